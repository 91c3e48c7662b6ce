# eoi/services.py
import logging

from django.db import IntegrityError, transaction
from django.db.models import Max
from rest_framework.exceptions import ValidationError

from .models import EOI, FIRST_EOI_NO

log = logging.getLogger(__name__)

MAX_NUMBER_ATTEMPTS = 5


def next_eoi_no() -> int:
    current = EOI.objects.aggregate(m=Max("eoi_no"))["m"]
    return FIRST_EOI_NO if current is None else current + 1


def create_eoi(data: dict) -> EOI:
    """
    eoi_no na diya ho to max+1 (ya 1001). Do parallel creates ek hi number
    utha lein to unique index IntegrityError deta hai; tab naya number leke retry.
    """
    data = dict(data)
    data.setdefault("status", "pending")
    explicit = data.get("eoi_no") is not None

    for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
        if not explicit:
            data["eoi_no"] = next_eoi_no()
        try:
            with transaction.atomic():
                return EOI.objects.create(**data)
        except IntegrityError:
            if explicit:
                raise ValidationError({"eoiNo": "EOI number already exists"})
            log.warning("EOI number %s taken, retrying (attempt %s)", data["eoi_no"], attempt)

    raise ValidationError({"eoiNo": "Could not assign an EOI number, please retry"})
