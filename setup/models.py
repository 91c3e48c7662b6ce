# setup/models
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models


class TimeStamped(models.Model):
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    class Meta:
        abstract = True


class CategoryType(models.TextChoices):
    MUTABLE = "mutable", "Mutable"
    IMMUTABLE = "immutable", "Immutable"


hex_color_validator = RegexValidator(
    r"^#([0-9A-Fa-f]{3}){1,2}$",
    "Color must be a hex value like #FFF or #1A2B3C",
)


class Category(TimeStamped):
    """
    Unit status taxonomy. Unit.status stores `name`; charts use colorHex
    and precedence for legend order.
    """
    name = models.CharField(
        max_length=100,
        unique=True,
        error_messages={"unique": "Category name already exists"},
    )
    display_name = models.CharField(max_length=150)
    color_hex = models.CharField(max_length=7, validators=[hex_color_validator])
    precedence = models.PositiveIntegerField(default=0, validators=[MinValueValidator(0)])
    type = models.CharField(max_length=10, choices=CategoryType.choices, default=CategoryType.MUTABLE)

    class Meta:
        ordering = ["precedence", "-created_at"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.display_name or self.name

    def save(self, *args, **kwargs):
        # name hamesha lowercase machine key
        self.name = (self.name or "").strip().lower()
        super().save(*args, **kwargs)

    @property
    def is_immutable(self):
        return self.type == CategoryType.IMMUTABLE
