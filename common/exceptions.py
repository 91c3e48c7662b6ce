# common/exceptions.py
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

log = logging.getLogger(__name__)


def _first_message(detail):
    """Nested DRF error detail se pehla readable message nikaalo."""
    if isinstance(detail, dict):
        for value in detail.values():
            msg = _first_message(value)
            if msg:
                return msg
        return ""
    if isinstance(detail, (list, tuple)):
        for item in detail:
            msg = _first_message(item)
            if msg:
                return msg
        return ""
    return str(detail)


def custom_exception_handler(exc, context):
    """
    Every error leaves the API as {"error": "..."}.
    Validation failures also carry "fields" with the per-field detail.
    """
    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(exc.message_dict if hasattr(exc, "error_dict") else exc.messages)
    elif isinstance(exc, ObjectDoesNotExist):
        exc = Http404(str(exc))

    response = exception_handler(exc, context)

    if response is not None:
        body = {"error": _first_message(response.data) or "Request failed"}
        if isinstance(exc, ValidationError) and isinstance(response.data, dict):
            body["fields"] = response.data
        response.data = body
        return response

    if isinstance(exc, IntegrityError):
        log.warning("Integrity error: %s", exc)
        return Response(
            {"error": "Database integrity error: " + str(exc)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    log.exception("Unhandled error in %s", context.get("view").__class__.__name__)
    return Response({"error": str(exc) or "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class Conflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists."
    default_code = "conflict"
