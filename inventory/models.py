# inventory/models.py
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

from setup.models import TimeStamped


class ProjectStatus(models.TextChoices):
    PLANNING = "planning", "Planning"
    UNDER_CONSTRUCTION = "under-construction", "Under Construction"
    COMPLETED = "completed", "Completed"


class CommercialPlacement(models.TextChoices):
    PROJECT_LEVEL = "projectLevel", "Project level"
    WING_LEVEL = "wingLevel", "Wing level"


class FloorType(models.TextChoices):
    RESIDENTIAL = "residential", "Residential"
    COMMERCIAL = "commercial", "Commercial"


# Category names jinka business meaning code me hai
STATUS_AVAILABLE = "available"
STATUS_BOOKED = "booked"
STATUS_CANCELED = "canceled"
STATUS_OTHERS = "others"


class Project(TimeStamped):
    name = models.CharField(max_length=200, db_index=True)
    developer = models.CharField(max_length=200, help_text="Project by")
    location = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    description = models.TextField(blank=True)
    start_date = models.DateField()
    completion_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=32, choices=ProjectStatus.choices)
    commercial_unit_placement = models.CharField(max_length=16, choices=CommercialPlacement.choices)
    project_stage = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["status"])]

    def __str__(self):
        return self.name

    @property
    def commercial_floors(self):
        """Project-level commercial floors (wing nahi hota)."""
        return self.floors.filter(wing__isnull=True, is_commercial_block=True)


class Wing(TimeStamped):
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="wings")
    name = models.CharField(max_length=100)
    units_per_floor = models.PositiveIntegerField()
    header_floor_index = models.IntegerField(default=0)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return f"{self.project.name} - {self.name}"

    @property
    def residential_floors(self):
        return self.floors.filter(is_commercial_block=False)

    @property
    def commercial_floors(self):
        return self.floors.filter(is_commercial_block=True)


class Floor(TimeStamped):
    """
    A floor lives in one of three lists:
      - wing.floors            (wing set, is_commercial_block=False)
      - wing.commercialFloors  (wing set, is_commercial_block=True)
      - project.commercialFloors (wing NULL, is_commercial_block=True)
    `position` keeps the order the floors were entered in; headerFloorIndex points into it.
    """
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="floors")
    wing = models.ForeignKey(Wing, on_delete=models.CASCADE, related_name="floors", null=True, blank=True)
    type = models.CharField(max_length=16, choices=FloorType.choices)
    display_number = models.IntegerField()
    show_area = models.BooleanField(default=True)
    is_commercial_block = models.BooleanField(default=False)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        label = "Ground" if self.display_number == 0 else f"Floor {self.display_number}"
        return f"{self.wing.name if self.wing_id else self.project.name} / {label}"

    @property
    def capacity(self):
        """Wing ka unitsPerFloor; project-level floors ka koi cap nahi."""
        return self.wing.units_per_floor if self.wing_id else None


class Unit(TimeStamped):
    floor = models.ForeignKey(Floor, on_delete=models.CASCADE, related_name="units")
    unit_number = models.CharField(max_length=50, db_index=True)
    area = models.DecimalField(max_digits=10, decimal_places=2, validators=[MinValueValidator(0)])
    configuration = models.CharField(max_length=50)
    unit_span = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    # setup.Category.name, FK nahi; category rename/delete unit ko nahi chhoota
    status = models.CharField(max_length=100, db_index=True)
    reserved_by_or_reason = models.CharField(max_length=255, null=True, blank=True)
    reference_id = models.CharField(max_length=64, null=True, blank=True)
    position = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(fields=["floor", "unit_number"], name="uniq_unit_number_per_floor"),
        ]

    def __str__(self):
        return f"{self.floor} - {self.unit_number}"


class BankAccountType(models.TextChoices):
    SAVINGS = "savings", "Savings"
    CURRENT = "current", "Current"


IFSC_VALIDATOR = RegexValidator(
    r"^[A-Za-z]{4}0[A-Za-z0-9]{6}$",
    "Please provide a valid IFSC code",
)


class BankDetail(TimeStamped):
    """
    Project ka collection account. Demand letter me yahi print hota hai
    aur ledger entries ka toAccount bhi yahi hai.
    """
    project = models.OneToOneField(Project, on_delete=models.CASCADE, related_name="bank")
    holder_name = models.CharField(max_length=200)
    account_number = models.CharField(max_length=34)
    name = models.CharField(max_length=150, help_text="Bank name")
    branch = models.CharField(max_length=150)
    ifsc_code = models.CharField(max_length=11, validators=[IFSC_VALIDATOR])
    account_type = models.CharField(max_length=16, choices=BankAccountType.choices)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.name} - {self.project.name}"

    def save(self, *args, **kwargs):
        for field in ("holder_name", "account_number", "name", "branch"):
            setattr(self, field, (getattr(self, field) or "").strip())
        self.ifsc_code = (self.ifsc_code or "").strip().upper()
        super().save(*args, **kwargs)
