import django_filters

from modules.orders.models import Order

ALL_STATUSES = "all"


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(method="filter_status")
    payment_status = django_filters.CharFilter(field_name="payment_status", lookup_expr="iexact")
    buyer = django_filters.UUIDFilter(field_name="buyer_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total_price", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total_price", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "payment_status",
            "buyer",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]

    def filter_status(self, queryset, name, value):
        if not value or value.lower() == ALL_STATUSES:
            return queryset
        return queryset.filter(status__iexact=value)
