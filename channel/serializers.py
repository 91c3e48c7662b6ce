from rest_framework import serializers

from .models import ClientPartner, PartnerEmployee


class PartnerEmployeeSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name", max_length=100)
    lastName = serializers.CharField(source="last_name", max_length=100, required=False, allow_blank=True)
    phoneNo = serializers.CharField(source="phone_no", max_length=20)
    altNo = serializers.CharField(source="alt_no", max_length=20, required=False, allow_blank=True)
    commissionPercentage = serializers.DecimalField(
        source="commission_percentage", max_digits=5, decimal_places=2,
        min_value=0, max_value=100, required=False,
    )
    isDeleted = serializers.BooleanField(source="is_deleted", read_only=True)

    class Meta:
        model = PartnerEmployee
        fields = [
            "id", "firstName", "lastName", "email", "phoneNo", "altNo",
            "position", "commissionPercentage", "isDeleted",
        ]


class ClientPartnerSerializer(serializers.ModelSerializer):
    cpId = serializers.CharField(source="cp_id", read_only=True)
    ownerName = serializers.CharField(source="owner_name", max_length=200, required=False, allow_blank=True)
    phoneNo = serializers.CharField(source="phone_no", max_length=20, required=False, allow_blank=True)
    companyWebsite = serializers.CharField(source="company_website", max_length=255, required=False, allow_blank=True)
    commissionPercentage = serializers.DecimalField(
        source="commission_percentage", max_digits=5, decimal_places=2,
        min_value=0, max_value=100, required=False, allow_null=True,
    )
    employees = serializers.SerializerMethodField()
    isDeleted = serializers.BooleanField(source="is_deleted", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = ClientPartner
        fields = [
            "id", "cpId", "name", "ownerName", "email", "phoneNo", "address", "companyWebsite",
            "commissionPercentage", "notes", "employees", "isDeleted", "createdAt", "updatedAt",
        ]

    def get_employees(self, obj):
        # soft-deleted employees response me nahi
        employees = [e for e in obj.employees.all() if not e.is_deleted]
        return PartnerEmployeeSerializer(employees, many=True).data
