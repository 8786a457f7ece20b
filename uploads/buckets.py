"""
Object buckets on top of Django's storage framework.

Each bucket is a STORAGES alias of the same name plus an entry in
settings.STORAGE_BUCKETS (public flag, per-object size limit). Objects are
addressed by name; the first path segment of a name is the identity key of
its uploader, and that is the only thing tying a file to its owner.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.files.storage import storages
from django.urls import reverse
from django.utils import timezone
from rest_framework import exceptions, status

from core.policies import Operation, registry

logger = logging.getLogger(__name__)


class BucketNotFound(exceptions.NotFound):
    default_detail = "Bucket not found."
    default_code = "bucket_not_found"


class ObjectNotFound(exceptions.NotFound):
    default_detail = "Object not found."
    default_code = "object_not_found"


class InvalidObjectName(exceptions.ValidationError):
    default_detail = "Invalid object name."
    default_code = "invalid_object_name"


class ObjectExists(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "An object with this name already exists."
    default_code = "object_exists"


class ObjectTooLarge(exceptions.APIException):
    status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    default_detail = "Object exceeds the bucket size limit."
    default_code = "object_too_large"


@dataclass(frozen=True)
class StoredObject:
    """An object in a bucket, as seen by the storage policies."""

    bucket: str
    name: str
    size: Optional[int] = None

    policy_label = "storage.objects"


def validate_object_name(name):
    if not name or name.startswith("/") or "\\" in name:
        raise InvalidObjectName(detail=f"Invalid object name {name!r}.")
    if any(segment in ("", ".", "..") for segment in name.split("/")):
        raise InvalidObjectName(detail=f"Invalid object name {name!r}.")
    return name


def first_path_segment(name):
    """First folder of an object name, or None when the name has no folder."""
    if not name:
        return None
    segments = name.split("/")
    if len(segments) < 2 or not segments[0]:
        return None
    return segments[0]


def build_object_key(owner_key, file_name):
    """<owner key>/<epoch millis>-<suffix>.<ext>, the name clients upload under."""
    millis = int(timezone.now().timestamp() * 1000)
    suffix = uuid.uuid4().hex[:8]
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else ""
    stem = f"{owner_key}/{millis}-{suffix}"
    return f"{stem}.{ext}" if ext else stem


class Bucket:
    def __init__(self, name, *, public=False, file_size_limit=None):
        self.name = name
        self.public = public
        self.file_size_limit = file_size_limit

    def __repr__(self):
        return f"<Bucket {self.name}>"

    @property
    def storage(self):
        return storages[self.name]

    def exists(self, name):
        return self.storage.exists(validate_object_name(name))

    def url(self, name):
        """API URL of the object; orders keep it in file_url."""
        return reverse("file-object", kwargs={"bucket": self.name, "name": name})

    def upload(self, actor, name, content):
        """
        Store content under name as actor. The insert policy decides whether
        actor may write under that name; existing objects are not replaced.
        """
        validate_object_name(name)
        obj = StoredObject(bucket=self.name, name=name, size=content.size)
        if self.file_size_limit is not None and content.size > self.file_size_limit:
            raise ObjectTooLarge(
                detail=f"{content.size} bytes exceeds the {self.file_size_limit} byte limit of {self.name}."
            )
        registry.enforce(actor, Operation.INSERT, obj)
        if self.storage.exists(name):
            raise ObjectExists()
        saved = self.storage.save(name, content)
        logger.info("Stored %s/%s (%s bytes)", self.name, saved, content.size)
        return StoredObject(bucket=self.name, name=saved, size=content.size)

    def open(self, actor, name):
        """Open an object for reading as actor."""
        validate_object_name(name)
        registry.enforce(actor, Operation.SELECT, StoredObject(bucket=self.name, name=name))
        if not self.storage.exists(name):
            raise ObjectNotFound()
        return self.storage.open(name, "rb")


def get_bucket(name):
    config = getattr(settings, "STORAGE_BUCKETS", {}).get(name)
    if config is None:
        raise BucketNotFound(detail=f"Bucket {name!r} not found.")
    return Bucket(
        name,
        public=config.get("public", False),
        file_size_limit=config.get("file_size_limit"),
    )
