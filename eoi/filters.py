# eoi/filters.py
from django.db.models import Q

from common.utils import any_icontains, fits_decimal, parse_date, parse_db_int, parse_decimal

# EOI.eoi_amt = DecimalField(max_digits=14, decimal_places=2)
AMOUNT_DIGITS = (14, 2)

TEXT_SEARCH_FIELDS = ["applicant", "manager", "config", "cp", "pan", "address", "status"]
INT_SEARCH_FIELDS = ["eoi_no", "contact", "alt", "aadhar"]

# wire sortBy -> model field
SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "date": "date",
    "eoiNo": "eoi_no",
    "eoiAmt": "eoi_amt",
    "applicant": "applicant",
    "manager": "manager",
    "status": "status",
    "config": "config",
}


def search_q(raw) -> Q:
    """
    Free-text search. Number jaisa dikhe to eoiNo/contact/alt/aadhar/eoiAmt
    par equality bhi OR ho jati hai.
    """
    term = (raw or "").strip()
    if not term:
        return Q()
    q = any_icontains(TEXT_SEARCH_FIELDS, term)

    amount = parse_decimal(term)
    if amount is not None and amount.is_finite() and fits_decimal(amount, *AMOUNT_DIGITS):
        q |= Q(eoi_amt=amount)
    # column range se bahar ka number kisi row se match nahi karega
    number = parse_db_int(term)
    if number is not None:
        for field in INT_SEARCH_FIELDS:
            q |= Q(**{field: number})
    return q


def build_eoi_filter(params) -> Q:
    q = search_q(params.get("search"))

    # case-insensitive substring
    for param, field in (("applicant", "applicant"), ("manager", "manager"), ("pan", "pan")):
        if params.get(param):
            q &= Q(**{f"{field}__icontains": params[param].strip()})

    # exact
    if params.get("config"):
        q &= Q(config=params["config"])
    if params.get("status"):
        q &= Q(status=params["status"])

    for param, field in (("eoiNo", "eoi_no"), ("contact", "contact")):
        if params.get(param):
            value = parse_db_int(params[param])
            # non-numeric ya out-of-range value kuch match nahi karega
            q &= Q(**{field: value}) if value is not None else Q(pk__in=[])

    start = parse_date(params.get("startDate"))
    end = parse_date(params.get("endDate"))
    if start:
        q &= Q(date__gte=start)
    if end:
        q &= Q(date__lte=end)

    min_amount = parse_decimal(params.get("minAmount"))
    max_amount = parse_decimal(params.get("maxAmount"))
    if min_amount is not None and min_amount.is_finite():
        if fits_decimal(min_amount, *AMOUNT_DIGITS):
            q &= Q(eoi_amt__gte=min_amount)
        elif min_amount > 0:
            q &= Q(pk__in=[])
    if max_amount is not None and max_amount.is_finite():
        if fits_decimal(max_amount, *AMOUNT_DIGITS):
            q &= Q(eoi_amt__lte=max_amount)
        elif max_amount < 0:
            q &= Q(pk__in=[])

    return q

