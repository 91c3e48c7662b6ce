from django.db import transaction
from rest_framework import serializers

from .models import Client, Remark, Visit, VisitStatus


class RemarkSerializer(serializers.ModelSerializer):
    class Meta:
        model = Remark
        fields = ["id", "date", "remark"]
        read_only_fields = ["id", "date"]


class VisitSerializer(serializers.ModelSerializer):
    clientId = serializers.PrimaryKeyRelatedField(source="client", read_only=True)
    status = serializers.ChoiceField(choices=VisitStatus.choices)
    remarks = RemarkSerializer(many=True, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Visit
        fields = [
            "id", "clientId", "date", "reference", "source", "relation", "closing",
            "status", "remarks", "createdAt",
        ]


class VisitCreateSerializer(VisitSerializer):
    """POST /api/visit/ → clientId ke saath"""
    clientId = serializers.PrimaryKeyRelatedField(
        source="client",
        queryset=Client.objects.all(),
        error_messages={"does_not_exist": "Client not found"},
    )


class ClientSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source="first_name", max_length=100)
    lastName = serializers.CharField(source="last_name", max_length=100)
    phoneNo = serializers.CharField(source="phone_no", max_length=20)
    altNo = serializers.CharField(source="alt_no", max_length=20, required=False, allow_blank=True)
    budget = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Client
        fields = [
            "id", "firstName", "lastName", "occupation", "email", "phoneNo", "altNo",
            "address", "note", "project", "requirement", "budget", "createdAt", "updatedAt",
        ]


class ClientListSerializer(ClientSerializer):
    """List me visits latest-first (visits[0] = current status)."""
    visits = serializers.SerializerMethodField()

    class Meta(ClientSerializer.Meta):
        fields = ClientSerializer.Meta.fields + ["visits"]

    def get_visits(self, obj):
        visits = sorted(obj.visits.all(), key=lambda v: (v.date, v.id), reverse=True)
        return VisitSerializer(visits, many=True).data


class ClientDetailSerializer(ClientSerializer):
    visits = VisitSerializer(many=True, read_only=True)

    class Meta(ClientSerializer.Meta):
        fields = ClientSerializer.Meta.fields + ["visits"]


class ClientCreateSerializer(ClientSerializer):
    visitData = VisitSerializer(write_only=True)

    class Meta(ClientSerializer.Meta):
        fields = ClientSerializer.Meta.fields + ["visitData"]

    @transaction.atomic
    def create(self, validated_data):
        visit_data = validated_data.pop("visitData")
        client = Client.objects.create(**validated_data)
        Visit.objects.create(client=client, **visit_data)
        return client


class RemarkCreateSerializer(serializers.Serializer):
    remark = serializers.CharField(error_messages={"invalid": "Invalid remark format"})
