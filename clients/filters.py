# clients/filters.py
from django.db.models import OuterRef, Q, Subquery, Value
from django.db.models.functions import Concat

from common.utils import any_icontains, day_end, day_start, parse_date, parse_decimal, split_terms
from .models import Client, Visit

CLIENT_SEARCH_FIELDS = [
    "first_name", "last_name", "occupation", "email", "phone_no",
    "alt_no", "address", "project", "requirement", "search_name",
]

# wire param → latest visit annotation
LATEST_VISIT_EXACT = {
    "reference": "latest_reference",
    "source": "latest_source",
    "relation": "latest_relation",
    "closing": "latest_closing",
    "status": "latest_status",
}


def _latest_visit(field):
    return Subquery(
        Visit.objects.filter(client=OuterRef("pk")).order_by("-date", "-id").values(field)[:1]
    )


def with_latest_visit(qs):
    """
    Har client par uski latest visit ke fields annotate karo.
    Bina visit wale clients list me nahi aate.
    """
    return qs.annotate(
        search_name=Concat("first_name", Value(" "), "last_name"),
        latest_visit_id=_latest_visit("id"),
        latest_date=_latest_visit("date"),
        latest_reference=_latest_visit("reference"),
        latest_source=_latest_visit("source"),
        latest_relation=_latest_visit("relation"),
        latest_closing=_latest_visit("closing"),
        latest_status=_latest_visit("status"),
    ).filter(latest_visit_id__isnull=False)


def filter_clients(params, qs=None):
    qs = with_latest_visit(qs if qs is not None else Client.objects.all())

    for term in split_terms(params.get("search")):
        qs = qs.filter(any_icontains(CLIENT_SEARCH_FIELDS, term))

    min_budget = parse_decimal(params.get("minBudget"))
    max_budget = parse_decimal(params.get("maxBudget"))
    if min_budget is not None:
        qs = qs.filter(budget__gte=min_budget)
    if max_budget is not None:
        qs = qs.filter(budget__lte=max_budget)

    if params.get("requirement"):
        qs = qs.filter(requirement=params["requirement"])
    if params.get("project"):
        qs = qs.filter(project=params["project"])

    manager = params.get("manager")
    if manager:
        qs = qs.filter(Q(latest_source=manager) | Q(latest_relation=manager) | Q(latest_closing=manager))

    from_date = parse_date(params.get("fromDate"))
    to_date = parse_date(params.get("toDate"))
    if from_date:
        qs = qs.filter(latest_date__gte=day_start(from_date))
    if to_date:
        qs = qs.filter(latest_date__lte=day_end(to_date))

    for param, field in LATEST_VISIT_EXACT.items():
        if params.get(param):
            qs = qs.filter(**{field: params[param]})

    return qs
