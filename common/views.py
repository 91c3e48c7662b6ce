# common/views.py
from django.http import Http404
from rest_framework.exceptions import NotFound


class NotFoundMessageMixin:
    """get_object() ka 404 apne message ke saath ({"error": "EOI not found"})."""

    not_found_message = "Not found"

    def get_not_found_message(self):
        return self.not_found_message

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            raise NotFound(self.get_not_found_message())
