from decimal import Decimal

from rest_framework import serializers

from channel.models import ClientPartner
from .models import (
    BookingAttachment,
    BookingLedger,
    ChequeStatus,
    ClientBooking,
    LedgerEntryType,
    LedgerPaymentMethod,
    PaymentType,
    payment_details_error,
)


class BookingAttachmentSerializer(serializers.ModelSerializer):
    docType = serializers.CharField(source="doc_type", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = BookingAttachment
        fields = ["id", "label", "docType", "file", "createdAt"]
        read_only_fields = fields


class ClientBookingSerializer(serializers.ModelSerializer):
    coApplicant = serializers.CharField(source="co_applicant", required=False, allow_blank=True)
    project = serializers.CharField(max_length=200, required=False)
    floor = serializers.CharField(max_length=50, required=False)
    phoneNo = serializers.CharField(source="phone_no", max_length=20)
    altNo = serializers.CharField(source="alt_no", max_length=20, required=False, allow_blank=True)
    paymentType = serializers.ChoiceField(source="payment_type", choices=PaymentType.choices)
    paymentStatus = serializers.CharField(source="payment_status", max_length=50)
    bookingAmt = serializers.DecimalField(
        source="booking_amt",
        max_digits=14,
        decimal_places=2,
        min_value=0,
        error_messages={"min_value": "Booking amount cannot be negative"},
    )
    agreementValue = serializers.DecimalField(
        source="agreement_value",
        max_digits=14,
        decimal_places=2,
        min_value=0,
        required=False,
        error_messages={"min_value": "Agreement value cannot be negative"},
    )
    dealTerms = serializers.CharField(source="deal_terms")
    paymentTerms = serializers.CharField(source="payment_terms")
    salesManager = serializers.CharField(source="sales_manager", max_length=150)
    clientPartner = serializers.CharField(source="client_partner", max_length=200)
    clientPartnerName = serializers.SerializerMethodField()
    unit = serializers.SerializerMethodField()
    attachments = BookingAttachmentSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = ClientBooking
        fields = [
            "id", "date", "applicant", "coApplicant", "status", "project", "wing", "floor", "unit",
            "phoneNo", "altNo", "email", "address", "paymentType", "paymentStatus", "bookingAmt", "agreementValue",
            "dealTerms", "paymentTerms", "salesManager", "clientPartner", "clientPartnerName",
            "attachments", "createdAt", "updatedAt",
        ]
        read_only_fields = ["status"]

    def get_unit(self, obj):
        unit = obj.unit
        if unit is None:
            return None
        return {
            "id": unit.id,
            "unitNumber": unit.unit_number,
            "area": str(unit.area),
            "configuration": unit.configuration,
        }

    def get_clientPartnerName(self, obj):
        """clientPartner id ho to company ka naam, warna jo text hai wahi."""
        value = obj.client_partner or ""
        if value.isdigit():
            name = ClientPartner.objects.filter(pk=int(value)).values_list("name", flat=True).first()
            if name:
                return name
        return value


class PaymentDetailsSerializer(serializers.Serializer):
    """Ledger row ke flat payment columns, wire par `paymentDetails` object."""
    referenceNumber = serializers.CharField(source="reference_number", max_length=100, required=False, allow_blank=True)
    transactionDate = serializers.DateField(source="transaction_date", required=False, allow_null=True)
    bankName = serializers.CharField(source="bank_name", max_length=150, required=False, allow_blank=True)
    chequeNumber = serializers.CharField(source="cheque_number", max_length=50, required=False, allow_blank=True)
    chequeDate = serializers.DateField(source="cheque_date", required=False, allow_null=True)
    dueDate = serializers.DateField(source="due_date", required=False, allow_null=True)
    chequeStatus = serializers.ChoiceField(
        source="cheque_status", choices=ChequeStatus.choices, required=False, allow_blank=True
    )
    upiTransactionId = serializers.CharField(
        source="upi_transaction_id", max_length=100, required=False, allow_blank=True
    )
    notes = serializers.CharField(required=False, allow_blank=True)


VALID_AMOUNT = "Valid amount is required"


class BookingLedgerSerializer(serializers.ModelSerializer):
    transactionId = serializers.CharField(source="transaction_id", read_only=True)
    bookingId = serializers.IntegerField(source="booking_id", read_only=True)
    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.01"),
        error_messages={"min_value": VALID_AMOUNT, "invalid": VALID_AMOUNT, "required": VALID_AMOUNT,
                        "null": VALID_AMOUNT, "max_digits": VALID_AMOUNT},
    )
    demand = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=0,
        error_messages={"min_value": "Demand cannot be negative"},
    )
    type = serializers.ChoiceField(choices=LedgerEntryType.choices)
    method = serializers.ChoiceField(choices=LedgerPaymentMethod.choices)
    paymentDetails = PaymentDetailsSerializer(source="*", required=False)
    stagePercentage = serializers.IntegerField(
        source="stage_percentage", min_value=0, max_value=100, required=False, allow_null=True
    )
    fromAccount = serializers.CharField(source="from_account", max_length=200, required=False, allow_blank=True)
    toAccount = serializers.IntegerField(source="to_account_id", read_only=True)
    toAccountName = serializers.SerializerMethodField()
    createdBy = serializers.CharField(source="created_by", read_only=True)
    isDeleted = serializers.BooleanField(source="is_deleted", read_only=True)
    deletedBy = serializers.CharField(source="deleted_by", read_only=True)
    deletedAt = serializers.DateTimeField(source="deleted_at", read_only=True)
    deletionReason = serializers.CharField(source="deletion_reason", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = BookingLedger
        fields = [
            "id", "transactionId", "bookingId", "date", "amount", "demand", "description", "type", "method",
            "paymentDetails", "stagePercentage", "fromAccount", "toAccount", "toAccountName",
            "createdBy", "isDeleted", "deletedBy", "deletedAt", "deletionReason", "createdAt", "updatedAt",
        ]
        extra_kwargs = {"date": {"required": False}}

    def get_toAccountName(self, obj):
        bank = obj.to_account
        return f"{bank.name} - {bank.account_number}" if bank else None

    def validate_description(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Description is required")
        return value

    def validate(self, attrs):
        message = payment_details_error(attrs.get("method"), attrs)
        if message:
            raise serializers.ValidationError({"paymentDetails": message})
        return attrs
