# booking/tasks.py
import logging

from celery import shared_task
from django.core.files.base import ContentFile

from .letters import render_cancellation_letter
from .models import BookingAttachment, ClientBooking

log = logging.getLogger(__name__)


@shared_task
def generate_cancellation_letter(booking_id: int):
    """
    Cancel commit hone ke baad chalta hai: letter PDF banake booking attachment me save.
    """
    booking = (
        ClientBooking.objects.select_related("unit__floor__project")
        .filter(pk=booking_id)
        .first()
    )
    if booking is None:
        log.warning("Cancellation letter skipped, booking %s not found", booking_id)
        return None

    pdf = render_cancellation_letter(booking)
    attachment = BookingAttachment(
        booking=booking,
        label="Cancellation Letter",
        doc_type=BookingAttachment.DocType.CANCELLATION_LETTER,
    )
    attachment.file.save(f"cancellation-letter-{booking.pk}.pdf", ContentFile(pdf), save=True)
    log.info("Cancellation letter %s stored for booking %s", attachment.pk, booking.pk)
    return attachment.pk
