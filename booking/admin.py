from django.contrib import admin
from .models import BookingAttachment, BookingLedger, ClientBooking


class BookingAttachmentInline(admin.TabularInline):
    model = BookingAttachment
    extra = 0


@admin.register(ClientBooking)
class ClientBookingAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "applicant", "project", "wing", "floor", "unit", "status", "booking_amt", "agreement_value")
    list_filter = ("status", "payment_type", "project")
    search_fields = ("applicant", "phone_no", "email")
    inlines = [BookingAttachmentInline]


@admin.register(BookingLedger)
class BookingLedgerAdmin(admin.ModelAdmin):
    list_display = ("transaction_id", "booking", "date", "type", "method", "amount", "is_deleted")
    list_filter = ("type", "method", "is_deleted")
    search_fields = ("transaction_id", "booking__applicant", "cheque_number", "upi_transaction_id")
    readonly_fields = ("transaction_id", "created_by", "deleted_by", "deleted_at")
