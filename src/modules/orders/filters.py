import django_filters

from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    payment_status = django_filters.CharFilter(
        field_name="payment_status", lookup_expr="iexact"
    )
    channel = django_filters.CharFilter(field_name="channel", lookup_expr="iexact")
    customer = django_filters.UUIDFilter(field_name="customer_id")
    operator = django_filters.NumberFilter(field_name="operator_id")
    start_date = django_filters.DateFilter(field_name="placed_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="placed_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "payment_status",
            "channel",
            "customer",
            "operator",
            "start_date",
            "end_date",
        ]
