import django_filters

from .choices import OrderStatus
from .models import PrintOrder


class PrintOrderFilter(django_filters.FilterSet):
    """?status=pending&status=printing&merchant=<uuid>"""

    status = django_filters.MultipleChoiceFilter(choices=OrderStatus.choices)
    created_after = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")

    class Meta:
        model = PrintOrder
        fields = ["status", "merchant"]
