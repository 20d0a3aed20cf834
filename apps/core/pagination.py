# apps/core/pagination.py
from rest_framework.pagination import PageNumberPagination


class StaticPagination(PageNumberPagination):
    """
    Page-number pagination for the client, visit and task listings.

    Pages hold PAGE_SIZE items from the REST_FRAMEWORK settings unless the
    caller asks for ``?page_size=``, which is capped at ``max_page_size``.
    """
    page_size_query_param = 'page_size'
    max_page_size = 100
