# booking/ledger.py
import re
import secrets
import time
from decimal import Decimal

from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce

from .models import PAYMENT_TYPES, LedgerEntryType

BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def generate_transaction_id() -> str:
    """TXN-<epoch ms>-<9 chars base36>"""
    suffix = "".join(secrets.choice(BASE36) for _ in range(9))
    return f"TXN-{int(time.time() * 1000)}-{suffix}"


def _sum(filter_q=None):
    return Coalesce(
        Sum("amount", filter=filter_q),
        Value(Decimal("0")),
        output_field=DecimalField(max_digits=16, decimal_places=2),
    )


def ledger_summary(qs) -> dict:
    """
    Deleted entries kabhi count nahi hote, includeDeleted list ke liye hai, summary ke liye nahi.
    """
    totals = qs.alive().aggregate(
        total_amount=_sum(),
        total_payments=_sum(Q(type__in=PAYMENT_TYPES)),
        total_refunds=_sum(Q(type=LedgerEntryType.REFUND)),
        total_penalties=_sum(Q(type=LedgerEntryType.PENALTY)),
    )
    return {
        "totalAmount": totals["total_amount"],
        "totalPayments": totals["total_payments"],
        "totalRefunds": totals["total_refunds"],
        "totalPenalties": totals["total_penalties"],
    }


def amount_received(booking) -> Decimal:
    summary = ledger_summary(booking.ledger_entries.all())
    return summary["totalPayments"] - summary["totalRefunds"]


# ---------- letter formatting ----------

ONES = [
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten",
    "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen",
    "Eighteen", "Nineteen",
]
TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

# Indian system: crore > lakh > thousand > hundred
INDIAN_SCALES = [(10 ** 7, "Crore"), (10 ** 5, "Lakh"), (10 ** 3, "Thousand"), (100, "Hundred")]


def _below_hundred(n: int) -> str:
    if n < 20:
        return ONES[n]
    tens, ones = divmod(n, 10)
    return f"{TENS[tens]} {ONES[ones]}".strip()


def _words(n: int) -> list[str]:
    parts = []
    for scale, name in INDIAN_SCALES:
        count, n = divmod(n, scale)
        if count:
            # 100 crore se upar crore ka count khud phir se words me
            head = " ".join(_words(count)) if count >= 100 else _below_hundred(count)
            parts.append(f"{head} {name}")
    if n:
        parts.append(_below_hundred(n))
    return parts


def amount_in_words(amount) -> str:
    """
    1234567 → 'Twelve Lakh Thirty Four Thousand Five Hundred Sixty Seven Only'
    Paise chhod diye jaate hain.
    """
    n = int(Decimal(str(amount)))
    if n == 0:
        return "Zero Only"
    words = " ".join(_words(abs(n)))
    if n < 0:
        words = f"Minus {words}"
    return f"{words} Only"


def format_inr(amount) -> str:
    """en-IN grouping: 1234567 → '12,34,567' (whole rupees)."""
    n = int(Decimal(str(amount)).to_integral_value())
    sign = "-" if n < 0 else ""
    digits = str(abs(n))
    if len(digits) <= 3:
        return f"{sign}{digits}"
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return f"{sign}{','.join(groups)},{tail}"


def wing_label(raw) -> str:
    """
    'A' → 'A-Wing', 'Wing b' → 'B-Wing', 'Tower c' → 'Tower-C'.
    Kuch aur ho to jaisa hai waisa.
    """
    s = re.sub(r"\s+", " ", str(raw or "").strip())
    if not s:
        return ""
    labeled = re.match(r"^(wing|tower)\s*([A-Za-z0-9-]+)$", s, re.IGNORECASE)
    if labeled:
        code = labeled.group(2).upper()
        if labeled.group(1).lower() == "tower":
            return f"Tower-{code}"
        return f"{code}-Wing"
    if re.match(r"^[A-Za-z0-9-]+$", s):
        return f"{s.upper()}-Wing"
    return s
