# booking/models
from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.utils import timezone

from inventory.models import STATUS_BOOKED
from setup.models import TimeStamped


class PaymentType(models.TextChoices):
    REGULAR = "regular-payment", "Regular Payment"
    DOWN = "down-payment", "Down Payment"


class ClientBooking(TimeStamped):
    """
    Ek unit ki booking.
    - unit FK inventory.Unit se; project / wing / floor display ke liye text me bhi
    - clientPartner free text ya ClientPartner ka id (string me)
    """

    date = models.DateTimeField(default=timezone.now)
    applicant = models.CharField(max_length=200)
    co_applicant = models.CharField(max_length=200, blank=True, default="")
    status = models.CharField(max_length=50, default=STATUS_BOOKED)

    project = models.CharField(max_length=200)
    wing = models.CharField(max_length=100, blank=True, default="")
    floor = models.CharField(max_length=50)
    unit = models.ForeignKey(
        "inventory.Unit",
        on_delete=models.SET_NULL,
        null=True,
        related_name="bookings",
    )

    phone_no = models.CharField(max_length=20)
    alt_no = models.CharField(max_length=20, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    payment_type = models.CharField(max_length=20, choices=PaymentType.choices)
    payment_status = models.CharField(max_length=50)
    booking_amt = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    agreement_value = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
    )
    deal_terms = models.TextField()
    payment_terms = models.TextField()
    sales_manager = models.CharField(max_length=150)
    client_partner = models.CharField(max_length=200)

    class Meta:
        ordering = ["-date", "-id"]
        indexes = [models.Index(fields=["status"]), models.Index(fields=["project"])]

    def __str__(self):
        return f"Booking #{self.pk} - {self.applicant}"

    def save(self, *args, **kwargs):
        if self.email:
            self.email = self.email.strip().lower()
        super().save(*args, **kwargs)


class BookingAttachment(TimeStamped):
    """Booking ke generated documents (abhi sirf cancellation letter)."""

    class DocType(models.TextChoices):
        CANCELLATION_LETTER = "CANCELLATION_LETTER", "Cancellation Letter"
        OTHER = "OTHER", "Other"

    booking = models.ForeignKey(
        ClientBooking,
        on_delete=models.CASCADE,
        related_name="attachments",
    )
    label = models.CharField(max_length=150, blank=True)
    file = models.FileField(upload_to="booking_attachments/")
    doc_type = models.CharField(max_length=50, choices=DocType.choices, default=DocType.OTHER)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.get_doc_type_display()} for booking #{self.booking_id}"


# ---------- Ledger ----------

class LedgerPaymentMethod(models.TextChoices):
    CASH = "cash", "Cash"
    CHEQUE = "cheque", "Cheque"
    BANK_TRANSFER = "bank-transfer", "Bank Transfer"
    ONLINE_PAYMENT = "online-payment", "Online Payment"
    UPI = "upi", "UPI"
    DEMAND_DRAFT = "demand-draft", "Demand Draft"
    NEFT = "neft", "NEFT"
    RTGS = "rtgs", "RTGS"
    IMPS = "imps", "IMPS"


class LedgerEntryType(models.TextChoices):
    SCHEDULE_PAYMENT = "schedule-payment", "Schedule Payment"
    ADVANCE = "advance", "Advance"
    PENALTY = "penalty", "Penalty"
    ADJUSTMENT = "adjustment", "Adjustment"
    REFUND = "refund", "Refund"


# ye types "received" me count hote hain
PAYMENT_TYPES = (LedgerEntryType.SCHEDULE_PAYMENT, LedgerEntryType.ADVANCE, LedgerEntryType.ADJUSTMENT)


class ChequeStatus(models.TextChoices):
    ISSUED = "issued", "Issued"
    CLEARED = "cleared", "Cleared"
    BOUNCED = "bounced", "Bounced"
    CANCELLED = "cancelled", "Cancelled"


def payment_details_error(method, details: dict):
    """
    Method ke hisaab se zaroori fields:
      - cheque: number, date, due date
      - upi / online-payment: transaction id
    Pehli kami ka message, ya None.
    """
    if method == LedgerPaymentMethod.CHEQUE:
        for field, label in (
            ("cheque_number", "Cheque number"),
            ("cheque_date", "Cheque date"),
            ("due_date", "Cheque due date"),
        ):
            if not details.get(field):
                return f"{label} is required for cheque payments"
    if method in (LedgerPaymentMethod.UPI, LedgerPaymentMethod.ONLINE_PAYMENT):
        if not details.get("upi_transaction_id"):
            return "Transaction ID is required for UPI/Online payments"
    return None


class LedgerQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(is_deleted=False)


class BookingLedger(TimeStamped):
    """
    Booking ke against ek payment / refund / penalty entry.
    Delete soft hota hai (deleted_by, reason ke saath); restore se wapas.
    """
    booking = models.ForeignKey(ClientBooking, on_delete=models.CASCADE, related_name="ledger_entries")
    transaction_id = models.CharField(max_length=64, unique=True)
    date = models.DateTimeField(default=timezone.now, db_index=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(0)])
    demand = models.DecimalField(max_digits=14, decimal_places=2, validators=[MinValueValidator(0)])
    description = models.TextField()
    type = models.CharField(max_length=20, choices=LedgerEntryType.choices, db_index=True)
    method = models.CharField(max_length=20, choices=LedgerPaymentMethod.choices, db_index=True)

    # payment details (method-specific)
    reference_number = models.CharField(max_length=100, blank=True, default="")
    transaction_date = models.DateField(null=True, blank=True)
    bank_name = models.CharField(max_length=150, blank=True, default="")
    cheque_number = models.CharField(max_length=50, blank=True, default="")
    cheque_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)
    cheque_status = models.CharField(max_length=20, choices=ChequeStatus.choices, blank=True, default="")
    upi_transaction_id = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    stage_percentage = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MaxValueValidator(100)]
    )
    from_account = models.CharField(max_length=200, blank=True, default="")
    to_account = models.ForeignKey(
        "inventory.BankDetail",
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )

    created_by = models.CharField(max_length=150)
    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_by = models.CharField(max_length=150, blank=True, default="")
    deleted_at = models.DateTimeField(null=True, blank=True)
    deletion_reason = models.TextField(blank=True, default="")

    objects = LedgerQuerySet.as_manager()

    class Meta:
        ordering = ["-date", "-created_at", "-id"]
        indexes = [
            models.Index(fields=["booking", "-date"]),
            models.Index(fields=["type", "method"]),
            models.Index(fields=["is_deleted", "-date"]),
        ]

    def __str__(self):
        return f"{self.transaction_id} ({self.get_type_display()}) {self.amount}"

    def save(self, *args, **kwargs):
        message = payment_details_error(self.method, self.__dict__)
        if message:
            raise ValidationError({"paymentDetails": message})
        if self.is_deleted and self.deleted_at is None:
            self.deleted_at = timezone.now()
        super().save(*args, **kwargs)

    def soft_delete(self, deleted_by: str, reason: str = ""):
        self.is_deleted = True
        self.deleted_by = deleted_by
        self.deleted_at = timezone.now()
        self.deletion_reason = reason or ""
        self.save()

    def restore(self):
        self.is_deleted = False
        self.deleted_by = ""
        self.deleted_at = None
        self.deletion_reason = ""
        self.save()
