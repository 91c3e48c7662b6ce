# eoi/models.py
from django.db import models

from setup.models import TimeStamped

FIRST_EOI_NO = 1001


class EOI(TimeStamped):
    """Expression of Interest: booking se pehle ka reservation record."""

    date = models.DateField()
    applicant = models.CharField(max_length=200, null=True, blank=True)
    contact = models.BigIntegerField(null=True, blank=True)
    alt = models.BigIntegerField(null=True, blank=True)
    status = models.CharField(max_length=50, default="pending")
    config = models.CharField(max_length=50)
    eoi_amt = models.DecimalField(max_digits=14, decimal_places=2)
    eoi_no = models.PositiveIntegerField(
        unique=True,
        error_messages={"unique": "EOI number already exists"},
    )
    manager = models.CharField(max_length=150)
    cp = models.CharField(max_length=200, null=True, blank=True)
    pan = models.CharField(max_length=20, null=True, blank=True)
    aadhar = models.BigIntegerField(null=True, blank=True)
    address = models.TextField(null=True, blank=True)

    class Meta:
        verbose_name = "EOI"
        verbose_name_plural = "EOIs"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["date"]),
        ]

    def __str__(self):
        return f"EOI #{self.eoi_no} - {self.applicant or 'N/A'}"

    def save(self, *args, **kwargs):
        if self.pan:
            self.pan = self.pan.strip().upper()
        for field in ("applicant", "manager", "cp", "address"):
            value = getattr(self, field)
            if isinstance(value, str):
                setattr(self, field, value.strip())
        super().save(*args, **kwargs)
