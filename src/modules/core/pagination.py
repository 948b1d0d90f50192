"""Page-number pagination shared by every list endpoint."""

from __future__ import annotations

from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """``?page=N&limit=M`` with the default page size taken from settings."""

    page_query_param = "page"
    page_size_query_param = "limit"
    max_page_size = 100
