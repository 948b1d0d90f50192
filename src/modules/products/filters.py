import django_filters

from modules.products.constants import Category, ProductStatus
from modules.products.models import Product


class ProductFilter(django_filters.FilterSet):
    name = django_filters.CharFilter(field_name="name", lookup_expr="icontains")
    category = django_filters.ChoiceFilter(choices=Category.choices)
    subcategory = django_filters.CharFilter(field_name="subcategory", lookup_expr="iexact")
    status = django_filters.ChoiceFilter(choices=ProductStatus.choices)
    owner = django_filters.UUIDFilter(field_name="owner_id")
    min_price = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    max_price = django_filters.NumberFilter(field_name="price", lookup_expr="lte")
    certified = django_filters.BooleanFilter(field_name="is_certified")

    class Meta:
        model = Product
        fields = [
            "name",
            "category",
            "subcategory",
            "status",
            "owner",
            "min_price",
            "max_price",
            "certified",
        ]
