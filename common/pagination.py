# common/pagination.py
import math

from rest_framework.pagination import BasePagination
from rest_framework.response import Response


def positive_int(value, default):
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


class LimitPagePagination(BasePagination):
    """
    ?page=1&limit=10 style pagination.

    Response shape:
      {success, data, currentPage, limitNumber, <total_key>, totalPages}

    total_key view ke `pagination_total_key` se aata hai (totalEois, totalClients ...).
    Out-of-range page par 404 nahi, khaali list milti hai.
    """

    page_query_param = "page"
    limit_query_param = "limit"
    default_limit = 10
    max_limit = 1000

    def paginate_queryset(self, queryset, request, view=None):
        self.page = positive_int(request.query_params.get(self.page_query_param), 1)
        self.limit = min(
            positive_int(request.query_params.get(self.limit_query_param), self.default_limit),
            self.max_limit,
        )
        self.total = queryset.count()
        self.total_key = getattr(view, "pagination_total_key", "total")

        offset = (self.page - 1) * self.limit
        return list(queryset[offset:offset + self.limit])

    def get_total_pages(self):
        return math.ceil(self.total / self.limit) if self.total else 0

    def get_paginated_response(self, data):
        return Response(
            {
                "success": True,
                "data": data,
                "currentPage": self.page,
                "limitNumber": self.limit,
                self.total_key: self.total,
                "totalPages": self.get_total_pages(),
            }
        )
