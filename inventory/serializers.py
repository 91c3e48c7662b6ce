from django.db import transaction
from rest_framework import serializers

from common.utils import DB_INT_MAX
from setup.models import Category
from .models import BankAccountType, BankDetail, CommercialPlacement, Floor, FloorType, Project, ProjectStatus, Unit, Wing
from .services import normalize_status


# ---------- Read serializers ----------

class UnitSerializer(serializers.ModelSerializer):
    floorId = serializers.IntegerField(source="floor_id", read_only=True)
    unitNumber = serializers.CharField(source="unit_number", read_only=True)
    unitSpan = serializers.IntegerField(source="unit_span", read_only=True)
    reservedByOrReason = serializers.CharField(source="reserved_by_or_reason", read_only=True, allow_null=True)
    referenceId = serializers.CharField(source="reference_id", read_only=True, allow_null=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Unit
        fields = [
            "id", "floorId", "unitNumber", "area", "configuration", "unitSpan",
            "status", "reservedByOrReason", "referenceId", "createdAt", "updatedAt",
        ]
        read_only_fields = fields


class UnitWithFloorSerializer(UnitSerializer):
    floor = serializers.SerializerMethodField()

    class Meta(UnitSerializer.Meta):
        fields = UnitSerializer.Meta.fields + ["floor"]
        read_only_fields = fields

    def get_floor(self, obj):
        f = obj.floor
        return {
            "id": f.id,
            "displayNumber": f.display_number,
            "type": f.type,
            "wingId": f.wing_id,
            "projectId": f.project_id,
        }


class FloorSerializer(serializers.ModelSerializer):
    displayNumber = serializers.IntegerField(source="display_number")
    showArea = serializers.BooleanField(source="show_area")
    units = UnitSerializer(many=True, read_only=True)

    class Meta:
        model = Floor
        fields = ["id", "type", "displayNumber", "showArea", "units"]


class WingSerializer(serializers.ModelSerializer):
    unitsPerFloor = serializers.IntegerField(source="units_per_floor")
    headerFloorIndex = serializers.IntegerField(source="header_floor_index")
    floors = serializers.SerializerMethodField()
    commercialFloors = serializers.SerializerMethodField()

    class Meta:
        model = Wing
        fields = ["id", "name", "unitsPerFloor", "headerFloorIndex", "floors", "commercialFloors"]

    def get_floors(self, obj):
        return FloorSerializer(obj.residential_floors.prefetch_related("units"), many=True).data

    def get_commercialFloors(self, obj):
        return FloorSerializer(obj.commercial_floors.prefetch_related("units"), many=True).data


class ProjectBasicSerializer(serializers.ModelSerializer):
    by = serializers.CharField(source="developer")
    startDate = serializers.DateField(source="start_date")
    completionDate = serializers.DateField(source="completion_date", allow_null=True, required=False)
    commercialUnitPlacement = serializers.ChoiceField(
        source="commercial_unit_placement", choices=CommercialPlacement.choices, read_only=True
    )
    projectStage = serializers.IntegerField(source="project_stage", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Project
        fields = [
            "id", "name", "by", "location", "email", "description", "startDate", "completionDate",
            "status", "commercialUnitPlacement", "projectStage", "createdAt", "updatedAt",
        ]


class ProjectUpdateSerializer(ProjectBasicSerializer):
    """PUT /project/<id>/ sirf basic fields; wings/floors yahan se nahi badlte."""

    # demand letter ka amount due isi % se nikalta hai
    projectStage = serializers.IntegerField(source="project_stage", min_value=0, max_value=100, required=False)

    class Meta(ProjectBasicSerializer.Meta):
        pass


class ProjectDetailSerializer(ProjectBasicSerializer):
    wings = serializers.SerializerMethodField()
    commercialFloors = serializers.SerializerMethodField()

    class Meta(ProjectBasicSerializer.Meta):
        fields = ProjectBasicSerializer.Meta.fields + ["wings", "commercialFloors"]

    def get_wings(self, obj):
        return WingSerializer(obj.wings.all(), many=True).data

    def get_commercialFloors(self, obj):
        return FloorSerializer(obj.commercial_floors.prefetch_related("units"), many=True).data


# ---------- Nested create ----------

class UnitInputSerializer(serializers.Serializer):
    unitNumber = serializers.CharField(max_length=50)
    area = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    configuration = serializers.CharField(max_length=50)
    unitSpan = serializers.IntegerField(min_value=1)
    status = serializers.CharField(max_length=100)
    reservedByOrReason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    referenceId = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)


class FloorInputSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=FloorType.choices)
    displayNumber = serializers.IntegerField()
    showArea = serializers.BooleanField(default=True)
    units = UnitInputSerializer(many=True, required=False, default=list)

    def validate_units(self, units):
        numbers = [u["unitNumber"] for u in units]
        dupes = {n for n in numbers if numbers.count(n) > 1}
        if dupes:
            raise serializers.ValidationError(f"Duplicate unit numbers on floor: {', '.join(sorted(dupes))}")
        return units


class WingInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    unitsPerFloor = serializers.IntegerField(min_value=0)
    headerFloorIndex = serializers.IntegerField(default=0)
    floors = FloorInputSerializer(many=True, required=False, default=list)
    commercialFloors = FloorInputSerializer(many=True, required=False, default=list)

    def validate(self, attrs):
        cap = attrs["unitsPerFloor"]
        for block in ("floors", "commercialFloors"):
            for floor in attrs.get(block) or []:
                used = sum(u["unitSpan"] for u in floor["units"])
                if used > cap:
                    raise serializers.ValidationError(
                        f"Wing {attrs['name']}: floor {floor['displayNumber']} uses {used} slots "
                        f"but unitsPerFloor is {cap}"
                    )
        return attrs


class ProjectCreateSerializer(serializers.Serializer):
    """
    POST /api/inventory/project/
    Project + wings + floors + units ek hi transaction me.
    """
    name = serializers.CharField(max_length=200)
    by = serializers.CharField(max_length=200)
    location = serializers.CharField(max_length=255)
    email = serializers.EmailField(required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    startDate = serializers.DateField()
    completionDate = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=ProjectStatus.choices)
    commercialUnitPlacement = serializers.ChoiceField(choices=CommercialPlacement.choices)
    projectStage = serializers.IntegerField(min_value=0, max_value=100, required=False, default=0)
    wings = WingInputSerializer(many=True, required=False, default=list)
    commercialFloors = FloorInputSerializer(many=True, required=False, default=list)

    def _all_units(self, attrs):
        wing_level = attrs["commercialUnitPlacement"] == CommercialPlacement.WING_LEVEL
        for wing in attrs.get("wings") or []:
            for floor in wing.get("floors") or []:
                yield from floor["units"]
            if wing_level:
                for floor in wing.get("commercialFloors") or []:
                    yield from floor["units"]
        if not wing_level:
            for floor in attrs.get("commercialFloors") or []:
                yield from floor["units"]

    def validate(self, attrs):
        known = set(Category.objects.values_list("name", flat=True))
        for unit in self._all_units(attrs):
            name = normalize_status(unit["status"])
            if name not in known:
                raise serializers.ValidationError(
                    {"status": f"Invalid status '{unit['status']}'. Create a Category first or use an existing one."}
                )
            unit["status"] = name
        return attrs

    def _create_floor(self, project, wing, data, position, commercial_block):
        floor = Floor.objects.create(
            project=project,
            wing=wing,
            type=data["type"],
            display_number=data["displayNumber"],
            show_area=data.get("showArea", True),
            is_commercial_block=commercial_block,
            position=position,
        )
        Unit.objects.bulk_create(
            [
                Unit(
                    floor=floor,
                    unit_number=u["unitNumber"],
                    area=u["area"],
                    configuration=u["configuration"],
                    unit_span=u["unitSpan"],
                    status=u["status"],
                    reserved_by_or_reason=u.get("reservedByOrReason") or None,
                    reference_id=u.get("referenceId") or None,
                    position=idx,
                )
                for idx, u in enumerate(data["units"])
            ]
        )
        return floor

    @transaction.atomic
    def create(self, validated_data):
        wing_level = validated_data["commercialUnitPlacement"] == CommercialPlacement.WING_LEVEL
        project = Project.objects.create(
            name=validated_data["name"],
            developer=validated_data["by"],
            location=validated_data["location"],
            email=validated_data.get("email") or "",
            description=validated_data.get("description") or "",
            start_date=validated_data["startDate"],
            completion_date=validated_data.get("completionDate"),
            status=validated_data["status"],
            commercial_unit_placement=validated_data["commercialUnitPlacement"],
            project_stage=validated_data.get("projectStage") or 0,
        )

        for w_idx, wing_data in enumerate(validated_data.get("wings") or []):
            wing = Wing.objects.create(
                project=project,
                name=wing_data["name"],
                units_per_floor=wing_data["unitsPerFloor"],
                header_floor_index=wing_data.get("headerFloorIndex", 0),
                position=w_idx,
            )
            for f_idx, floor_data in enumerate(wing_data.get("floors") or []):
                self._create_floor(project, wing, floor_data, f_idx, commercial_block=False)

            # wing-level commercial floors sirf wingLevel placement me
            if wing_level:
                for f_idx, floor_data in enumerate(wing_data.get("commercialFloors") or []):
                    self._create_floor(project, wing, floor_data, f_idx, commercial_block=True)

        if not wing_level:
            for f_idx, floor_data in enumerate(validated_data.get("commercialFloors") or []):
                self._create_floor(project, None, floor_data, f_idx, commercial_block=True)

        return project


# ---------- Unit write ----------

class UnitCreateSerializer(serializers.Serializer):
    floorId = serializers.IntegerField()
    unitNumber = serializers.CharField(max_length=50)
    area = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    configuration = serializers.CharField(max_length=50)
    unitSpan = serializers.IntegerField(min_value=1)
    status = serializers.CharField(max_length=100)
    reservedByOrReason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


class UnitUpdateSerializer(serializers.Serializer):
    unitNumber = serializers.CharField(max_length=50, required=False)
    area = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    configuration = serializers.CharField(max_length=50, required=False)
    unitSpan = serializers.IntegerField(min_value=1, required=False)
    status = serializers.CharField(max_length=100, required=False)
    reservedByOrReason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    referenceId = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)


class UnitStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=100)
    reservedByOrReason = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)


# ---------- Bank details ----------

class BankDetailSerializer(serializers.ModelSerializer):
    projectId = serializers.IntegerField(source="project_id", min_value=1, max_value=DB_INT_MAX)
    projectName = serializers.CharField(source="project.name", read_only=True)
    holderName = serializers.CharField(source="holder_name", max_length=200)
    accountNumber = serializers.RegexField(
        r"^[0-9A-Za-z]{6,34}$",
        source="account_number",
        error_messages={"invalid": "Please provide a valid account number"},
    )
    name = serializers.CharField(max_length=150)
    branch = serializers.CharField(max_length=150)
    ifscCode = serializers.RegexField(
        r"^[A-Za-z]{4}0[A-Za-z0-9]{6}$",
        source="ifsc_code",
        error_messages={"invalid": "Please provide a valid IFSC code"},
    )
    accountType = serializers.ChoiceField(source="account_type", choices=BankAccountType.choices)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = BankDetail
        fields = [
            "id", "projectId", "projectName", "holderName", "accountNumber", "name", "branch",
            "ifscCode", "accountType", "createdAt", "updatedAt",
        ]

    def validate_ifscCode(self, value):
        return value.strip().upper()

    def validate_projectId(self, value):
        if self.instance is not None and value != self.instance.project_id:
            raise serializers.ValidationError("Bank details cannot be moved to another project")
        return value
