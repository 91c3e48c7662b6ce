from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from .models import EOI


class EOISerializer(serializers.ModelSerializer):
    eoiAmt = serializers.DecimalField(source="eoi_amt", max_digits=14, decimal_places=2)
    eoiNo = serializers.IntegerField(
        source="eoi_no",
        required=False,
        min_value=1,
        validators=[UniqueValidator(queryset=EOI.objects.all(), message="EOI number already exists")],
    )
    status = serializers.CharField(max_length=50, required=False, allow_blank=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = EOI
        fields = [
            "id", "date", "applicant", "contact", "alt", "status", "config", "eoiAmt", "eoiNo",
            "manager", "cp", "pan", "aadhar", "address", "createdAt", "updatedAt",
        ]

    def validate_pan(self, value):
        return value.strip().upper() if value else value

    def validate_status(self, value):
        return value or "pending"
