import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from common.excel import build_table_workbook, xlsx_response
from common.exceptions import Conflict
from common.pagination import LimitPagePagination
from common.pdf_utils import pdf_response
from common.utils import (
    as_str,
    day_end,
    day_start,
    every_term_matches,
    fits_decimal,
    parse_date,
    parse_db_int,
    parse_decimal,
    split_csv,
)
from common.views import NotFoundMessageMixin
from inventory.layout import floor_label
from inventory.models import STATUS_BOOKED, STATUS_CANCELED, BankDetail, Unit
from .ledger import generate_transaction_id, ledger_summary
from .letters import DemandLetterError, demand_amounts, interest_for_months, render_demand_letter
from .models import BookingAttachment, BookingLedger, ClientBooking
from .serializers import BookingLedgerSerializer, ClientBookingSerializer
from .tasks import generate_cancellation_letter

log = logging.getLogger(__name__)

MAX_INTEREST_MONTHS = 1200

BOOKING_SEARCH_FIELDS = [
    "applicant", "co_applicant", "phone_no", "email", "project",
    "sales_manager", "client_partner", "unit__unit_number",
]

BOOKING_EXPORT_HEADERS = [
    "Date", "Applicant", "CoApplicant", "Project", "Wing", "Floor", "Unit No", "Area",
    "Configuration", "PhoneNo", "AltNo", "Plan", "Booking Amount", "Status",
    "Deal Terms", "Payment Terms", "SM", "CP",
]


def payment_type_abbreviation(payment_type: str) -> str:
    """'regular-payment' → 'RP'"""
    words = as_str(payment_type).replace("-", " ").split()
    return "".join(w[0].upper() for w in words)


class ClientBookingViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    POST   /api/client-booking/                     unit → booked (same transaction)
    GET    /api/client-booking/?status=&project=&search=&page=&limit=
    GET    /api/client-booking/<id>/
    PATCH  /api/client-booking/<id>/
    DELETE /api/client-booking/<id>/
    GET    /api/client-booking/export/              XLSX
    POST   /api/client-booking/<id>/cancel/         unit + booking → canceled, letter on commit
    GET    /api/client-booking/<id>/cancellation-letter/
    GET    /api/client-booking/<id>/demand-letter/?interest=|months=
    """
    serializer_class = ClientBookingSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LimitPagePagination
    pagination_total_key = "total"
    not_found_message = "Booking not found"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        qs = ClientBooking.objects.select_related("unit").prefetch_related("attachments")
        if self.action not in ("list", "export"):
            return qs
        params = self.request.query_params
        if params.get("status"):
            qs = qs.filter(status=params["status"].strip().lower())
        if params.get("project"):
            qs = qs.filter(project=params["project"])
        qs = qs.filter(every_term_matches(BOOKING_SEARCH_FIELDS, params.get("search")))
        return qs.order_by("-date", "-id")

    def create(self, request, *args, **kwargs):
        raw_unit = request.data.get("unit")
        if raw_unit in (None, ""):
            raise ValidationError({"unit": "Unit ID is required"})
        unit_id = parse_db_int(raw_unit)
        if unit_id is None or not Unit.objects.filter(pk=unit_id).exists():
            raise NotFound("Unit not found")

        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)

        with transaction.atomic():
            unit = Unit.objects.select_for_update().select_related("floor__project", "floor__wing").get(pk=unit_id)
            if unit.status == STATUS_BOOKED:
                raise Conflict(f"Unit {unit.unit_number} is already booked")

            floor = unit.floor
            booking = ser.save(
                unit=unit,
                status=STATUS_BOOKED,
                project=ser.validated_data.get("project") or floor.project.name,
                wing=ser.validated_data.get("wing") or (floor.wing.name if floor.wing else ""),
                floor=ser.validated_data.get("floor") or floor_label(floor.display_number),
            )

            unit.status = STATUS_BOOKED
            unit.reserved_by_or_reason = booking.applicant
            unit.reference_id = str(booking.pk)
            unit.save(update_fields=["status", "reserved_by_or_reason", "reference_id", "updated_at"])

        log.info("Booking %s created, unit %s marked booked", booking.pk, unit.pk)
        return Response(
            {"success": True, "data": self.get_serializer(booking).data},
            status=status.HTTP_201_CREATED,
        )

    def retrieve(self, request, *args, **kwargs):
        return Response({"success": True, "data": self.get_serializer(self.get_object()).data})

    def partial_update(self, request, *args, **kwargs):
        booking = self.get_object()
        ser = self.get_serializer(booking, data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        ser.save()
        return Response({"success": True, "data": ser.data})

    def destroy(self, request, *args, **kwargs):
        booking = self.get_object()
        booking.delete()
        return Response({"success": True, "message": "Booking deleted successfully"})

    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        self.get_object()

        with transaction.atomic():
            booking = ClientBooking.objects.select_for_update().get(pk=pk)
            if booking.status == STATUS_CANCELED:
                raise ValidationError("Booking is already canceled")

            if booking.unit_id:
                unit = Unit.objects.select_for_update().get(pk=booking.unit_id)
                unit.status = STATUS_CANCELED
                unit.save(update_fields=["status", "updated_at"])

            booking.status = STATUS_CANCELED
            booking.save(update_fields=["status", "updated_at"])

            # letter sirf commit ke baad, rollback par kuch nahi
            transaction.on_commit(lambda: generate_cancellation_letter.delay(booking.pk))

        log.info("Booking %s canceled", booking.pk)
        return Response(
            {
                "success": True,
                "message": "Booking canceled successfully",
                "data": self.get_serializer(booking).data,
            }
        )

    @action(detail=True, methods=["get"], url_path="cancellation-letter")
    def cancellation_letter(self, request, pk=None):
        booking = self.get_object()
        letter = booking.attachments.filter(doc_type=BookingAttachment.DocType.CANCELLATION_LETTER).first()
        if letter is None or not letter.file:
            raise NotFound("Cancellation letter not available")
        with letter.file.open("rb") as fh:
            content = fh.read()
        return pdf_response(content, f"cancellation-letter-{booking.pk}.pdf", inline=True)

    @action(detail=True, methods=["get"], url_path="demand-letter")
    def demand_letter(self, request, pk=None):
        """
        ?interest=<amount> ya ?months=<n> (payable par 24% p.a.).
        Dono na ho to plain demand letter.
        """
        booking = self.get_object()
        params = request.query_params
        interest = Decimal("0")
        try:
            if params.get("interest") not in (None, ""):
                interest = parse_decimal(params["interest"])
                if interest is None or not interest.is_finite() or interest <= 0 or not fits_decimal(interest, 14, 2):
                    raise ValidationError({"interest": "Please enter a valid interest amount"})
            elif params.get("months") not in (None, ""):
                months = parse_db_int(params["months"])
                if months is None or not 0 < months <= MAX_INTEREST_MONTHS:
                    raise ValidationError({"months": "Please enter a valid number of months"})
                interest = interest_for_months(demand_amounts(booking)["payable"], months)
            pdf = render_demand_letter(booking, interest)
        except DemandLetterError as e:
            raise ValidationError(str(e))

        kind = "interest-letter" if interest else "demand-letter"
        log.info("%s generated for booking %s", kind, booking.pk)
        return pdf_response(pdf, f"{kind}-{booking.pk}.pdf", inline=True)

    @action(detail=False, methods=["get"], url_path="export")
    def export(self, request):
        rows = []
        for b in self.get_queryset():
            unit = b.unit
            rows.append(
                [
                    timezone.localtime(b.date).strftime("%d/%m/%Y") if b.date else "N/A",
                    b.applicant,
                    b.co_applicant,
                    b.project,
                    b.wing,
                    b.floor,
                    unit.unit_number if unit else "",
                    float(unit.area) if unit else "",
                    unit.configuration.upper() if unit else "",
                    b.phone_no,
                    b.alt_no,
                    payment_type_abbreviation(b.payment_type),
                    float(b.booking_amt),
                    b.status.title(),
                    b.deal_terms,
                    b.payment_terms,
                    b.sales_manager,
                    b.client_partner,
                ]
            )
        wb = build_table_workbook("Bookings", BOOKING_EXPORT_HEADERS, rows)
        return xlsx_response(wb, f"bookings-{timezone.localdate():%Y-%m-%d}.xlsx")


class BookingLedgerViewSet(NotFoundMessageMixin, viewsets.ModelViewSet):
    """
    POST   /api/booking-ledger/                        new entry, transactionId auto
    GET    /api/booking-ledger/client/<bookingId>/     ?page=&limit=&fromDate=&toDate=&type=&method=&includeDeleted=
    GET    /api/booking-ledger/<id>/
    DELETE /api/booking-ledger/<id>/                   soft delete, body {reason}
    PATCH  /api/booking-ledger/<id>/restore/
    """
    serializer_class = BookingLedgerSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = LimitPagePagination
    pagination_total_key = "total"
    not_found_message = "Payment not found"
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        return BookingLedger.objects.select_related("to_account")

    def list(self, request, *args, **kwargs):
        raise NotFound("Client booking id is required")

    def create(self, request, *args, **kwargs):
        booking_id = parse_db_int(request.data.get("bookingId"))
        if booking_id is None or not ClientBooking.objects.filter(pk=booking_id).exists():
            raise NotFound("Client booking not found")
        account_id = parse_db_int(request.data.get("toAccount"))
        if account_id is None or not BankDetail.objects.filter(pk=account_id).exists():
            raise NotFound("Bank account not found")

        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)
        entry = ser.save(
            booking_id=booking_id,
            to_account_id=account_id,
            transaction_id=generate_transaction_id(),
            created_by=request.user.get_username(),
        )
        log.info("Ledger entry %s (%s %s) added to booking %s", entry.transaction_id, entry.type, entry.amount, booking_id)
        return Response(
            {"success": True, "message": "Payment added successfully", "data": self.get_serializer(entry).data},
            status=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["get"], url_path=r"client/(?P<booking_id>[^/.]+)")
    def client(self, request, booking_id=None):
        booking_pk = parse_db_int(booking_id)
        booking = ClientBooking.objects.filter(pk=booking_pk).first() if booking_pk else None
        if booking is None:
            raise NotFound("Client booking not found")

        params = request.query_params
        qs = self.get_queryset().filter(booking=booking)
        if (params.get("includeDeleted") or "").lower() != "true":
            qs = qs.alive()
        from_date = parse_date(params.get("fromDate"))
        if from_date:
            qs = qs.filter(date__gte=day_start(from_date))
        to_date = parse_date(params.get("toDate"))
        if to_date:
            qs = qs.filter(date__lte=day_end(to_date))
        types = split_csv(params.getlist("type"))
        if types:
            qs = qs.filter(type__in=types)
        methods = split_csv(params.getlist("method"))
        if methods:
            qs = qs.filter(method__in=methods)

        # summary filters ke saath, deleted hamesha bahar
        summary = ledger_summary(qs)
        page = self.paginate_queryset(qs)
        response = self.get_paginated_response(self.get_serializer(page, many=True).data)
        response.data["summary"] = summary
        return response

    def retrieve(self, request, *args, **kwargs):
        return Response({"success": True, "data": self.get_serializer(self.get_object()).data})

    def partial_update(self, request, *args, **kwargs):
        raise ValidationError("Ledger entries cannot be edited, delete and add a new one")

    def destroy(self, request, *args, **kwargs):
        entry = self.get_object()
        if entry.is_deleted:
            raise ValidationError("Payment is already deleted")
        reason = as_str(request.data.get("reason"))
        entry.soft_delete(deleted_by=request.user.get_username(), reason=reason)
        log.info("Ledger entry %s deleted by %s", entry.transaction_id, entry.deleted_by)
        return Response(
            {"success": True, "message": "Payment deleted successfully", "data": self.get_serializer(entry).data}
        )

    @action(detail=True, methods=["patch"], url_path="restore")
    def restore(self, request, pk=None):
        entry = self.get_object()
        if not entry.is_deleted:
            raise ValidationError("Payment is not deleted")
        entry.restore()
        log.info("Ledger entry %s restored", entry.transaction_id)
        return Response(
            {"success": True, "message": "Payment restored successfully", "data": self.get_serializer(entry).data}
        )
