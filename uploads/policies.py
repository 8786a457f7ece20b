"""
Storage policies for the print-files bucket: uploaders own the folder named
after their identity key; merchants may read files attached to their orders.
"""
from core.policies import Operation, policy, same_key
from orders.models import PrintOrder

from .buckets import StoredObject, first_path_segment

PRINT_FILES = "print-files"


@policy(StoredObject, Operation.INSERT, "Users can upload their own files")
def upload_own_files(key, obj):
    return obj.bucket == PRINT_FILES and same_key(key, first_path_segment(obj.name))


@policy(StoredObject, Operation.SELECT, "Users can view their own files")
def view_own_files(key, obj):
    return obj.bucket == PRINT_FILES and same_key(key, first_path_segment(obj.name))


@policy(StoredObject, Operation.SELECT, "Merchants can view files in their orders")
def view_order_files(key, obj):
    if obj.bucket != PRINT_FILES:
        return False
    return (
        PrintOrder.objects.filter(merchant__user_id=key)
        .referencing_object(obj.name)
        .exists()
    )
