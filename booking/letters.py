# booking/letters.py
from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.utils import timezone

from common.pdf_utils import render_html_to_pdf_bytes
from inventory.layout import floor_label
from inventory.models import BankDetail, FloorType
from .ledger import amount_in_words, amount_received, format_inr, wing_label


def property_type(unit) -> str:
    if unit is not None and unit.floor.type == FloorType.COMMERCIAL:
        return "shop"
    return "flat"


def property_identifier(booking) -> str:
    """'Flat A-101' / 'Shop 12'"""
    unit_no = booking.unit.unit_number if booking.unit else ""
    wing = f"{booking.wing}-" if booking.wing else ""
    return f"{property_type(booking.unit).title()} {wing}{unit_no}".strip()


def cancellation_letter_context(booking):
    project = booking.unit.floor.project if booking.unit else None
    return {
        "company_name": settings.COMPANY_NAME,
        "developer": (project.developer if project else "").title(),
        "location": project.location if project else "",
        "project_name": project.name if project else booking.project,
        "holder": booking.applicant,
        "property": property_identifier(booking),
        "property_type": property_type(booking.unit),
        "date": timezone.localdate(),
    }


def render_cancellation_letter(booking) -> bytes:
    return render_html_to_pdf_bytes("booking/cancellation_letter.html", cancellation_letter_context(booking))


# ---------- demand / interest letter ----------

INTEREST_RATE = Decimal("24")  # % per annum, 7 din ke baad


class DemandLetterError(Exception):
    """Letter banane ke liye data adhura hai."""


def interest_for_months(payable, months) -> Decimal:
    """payable par 24% p.a. simple interest, poore rupees me."""
    if payable <= 0:
        return Decimal("0")
    value = Decimal(payable) * INTEREST_RATE * Decimal(months) / Decimal(1200)
    return value.to_integral_value(rounding=ROUND_HALF_UP)


def letter_date(d) -> str:
    """19th October, 2026"""
    return f"{floor_label(d.day)} {d:%B}, {d.year}"


def demand_amounts(booking) -> dict:
    """
    agreement, due (stage % ka, neeche round), received (payments - refunds), payable.
    """
    if booking.unit is None:
        raise DemandLetterError("Booking has no unit for generating demand letter")
    if not booking.agreement_value or booking.agreement_value <= 0:
        raise DemandLetterError("Missing agreement value for generating demand letter")
    agreement = int(booking.agreement_value)
    amount_due = agreement * booking.unit.floor.project.project_stage // 100
    received = amount_received(booking)
    return {
        "agreement": agreement,
        "due": amount_due,
        "received": received,
        "payable": amount_due - received,
    }


def demand_letter_context(booking, interest=Decimal("0")) -> dict:
    amounts = demand_amounts(booking)
    unit = booking.unit
    project = unit.floor.project
    bank = BankDetail.objects.filter(project=project).first()
    if bank is None:
        raise DemandLetterError("Missing project bank data for generating demand letter")

    agreement, amount_due = amounts["agreement"], amounts["due"]
    received, payable = amounts["received"], amounts["payable"]
    interest = Decimal(interest or 0)
    total = payable + interest

    wing = unit.floor.wing.name if unit.floor.wing_id else booking.wing
    co_applicants = [n.strip() for n in (booking.co_applicant or "").split(" & ") if n.strip()]

    return {
        "title": "INTEREST LETTER" if interest else "DEMAND LETTER",
        "date": letter_date(timezone.localdate()),
        "applicant": booking.applicant,
        "co_applicants": co_applicants,
        "unit_number": unit.unit_number,
        "floor": floor_label(unit.floor.display_number),
        "wing": wing_label(wing),
        "project_name": project.name,
        "address": project.location,
        "project_stage": project.project_stage,
        "agreement_value": format_inr(agreement),
        "amount_due": format_inr(amount_due),
        "amount_received": format_inr(received),
        "amount_payable": format_inr(payable),
        "interest": format_inr(interest) if interest else "",
        "total_payable": format_inr(total),
        "amount_words": amount_in_words(total),
        "interest_rate": INTEREST_RATE,
        "bank_rows": [
            ("Account Name", bank.holder_name),
            ("Bank Name", bank.name),
            ("Branch", bank.branch),
            ("Account Number", bank.account_number),
            ("IFSC Code", bank.ifsc_code),
        ],
    }


def render_demand_letter(booking, interest=Decimal("0")) -> bytes:
    return render_html_to_pdf_bytes("booking/demand_letter.html", demand_letter_context(booking, interest))
