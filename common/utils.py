# common/utils.py
from datetime import date, datetime, time, timedelta
from decimal import Decimal, InvalidOperation
from functools import reduce
import operator

from django.db.models import Q
from django.utils import timezone


def as_str(val: object) -> str:
    """None → "", everything else → stripped str."""
    if val is None:
        return ""
    return str(val).strip()


def parse_number(raw):
    """
    "2500" → 2500.0, "abc" → None.
    Search box ka value number hai ya nahi, isi se decide hota hai.
    """
    if raw is None:
        return None
    s = str(raw).strip()
    if not s:
        return None
    try:
        value = float(s)
    except ValueError:
        return None
    if value != value or value in (float("inf"), float("-inf")):
        return None
    return value


def parse_decimal(raw):
    if raw in (None, ""):
        return None
    try:
        return Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None


def parse_int(raw):
    value = parse_number(raw)
    if value is None or not value.is_integer():
        return None
    return int(value)


# BigIntegerField ki range; isse bahar ka int lookup me DB overflow deta hai
DB_INT_MIN = -(2 ** 63)
DB_INT_MAX = 2 ** 63 - 1


def parse_db_int(raw):
    """parse_int, lekin sirf tab jab value 64-bit column me fit ho."""
    value = parse_int(raw)
    if value is None or not DB_INT_MIN <= value <= DB_INT_MAX:
        return None
    return value


def fits_decimal(value, max_digits: int, decimal_places: int) -> bool:
    """DecimalField(max_digits, decimal_places) me ye value aa sakti hai?"""
    return value is not None and abs(value) < Decimal(10) ** (max_digits - decimal_places)


def parse_date(raw):
    """ISO date / datetime string → date, else None."""
    if raw in (None, ""):
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    for fmt in ("%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%S.%fZ", "%d-%m-%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def day_start(d: date) -> datetime:
    return timezone.make_aware(datetime.combine(d, time.min))


def day_end(d: date) -> datetime:
    """Inclusive end of day (23:59:59.999999)."""
    return timezone.make_aware(datetime.combine(d, time.min)) + timedelta(days=1, microseconds=-1)


def split_terms(raw) -> list[str]:
    return [t for t in as_str(raw).split() if t]


def split_csv(values) -> list[str]:
    """
    ["a,b", "c"] → ["a", "b", "c"].
    ?status=a&status=b aur ?status=a,b dono support karne ke liye.
    """
    out = []
    for value in values:
        out.extend(v.strip() for v in str(value).split(",") if v.strip())
    return out


def any_icontains(fields, term) -> Q:
    """OR of field__icontains=term across fields."""
    return reduce(operator.or_, (Q(**{f"{f}__icontains": term}) for f in fields))


def every_term_matches(fields, raw) -> Q:
    """
    Multi-word search: har term kisi na kisi field me match hona chahiye.
    """
    terms = split_terms(raw)
    if not terms:
        return Q()
    return reduce(operator.and_, (any_icontains(fields, t) for t in terms))


def ordering_from_params(params, allowed: dict, default_field: str, default_desc=True) -> list[str]:
    """
    sortBy / sortOrder → order_by() list.
    `allowed` maps wire names (createdAt) to model fields (created_at).
    """
    field = allowed.get(params.get("sortBy") or "", allowed.get(default_field, default_field))
    order = (params.get("sortOrder") or ("desc" if default_desc else "asc")).lower()
    prefix = "" if order == "asc" else "-"
    return [f"{prefix}{field}", f"{prefix}id"]
