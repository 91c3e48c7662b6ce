# clients/models.py
from django.db import models
from django.utils import timezone

from setup.models import TimeStamped


class VisitStatus(models.TextChoices):
    LOST = "lost", "Lost"
    COLD = "cold", "Cold"
    WARM = "warm", "Warm"
    HOT = "hot", "Hot"
    BOOKED = "booked", "Booked"


class Client(TimeStamped):
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    occupation = models.CharField(max_length=150, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone_no = models.CharField(max_length=20)
    alt_no = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")
    note = models.TextField(blank=True, default="")
    project = models.CharField(max_length=200)
    requirement = models.CharField(max_length=100)
    budget = models.DecimalField(max_digits=14, decimal_places=2)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def full_name(self):
        return str(self)


class Visit(TimeStamped):
    """Site visit; client ka 'current' status uski latest visit se aata hai."""

    client = models.ForeignKey(Client, on_delete=models.CASCADE, related_name="visits")
    date = models.DateTimeField()
    reference = models.CharField(max_length=150)
    source = models.CharField(max_length=150)
    relation = models.CharField(max_length=150)
    closing = models.CharField(max_length=150)
    status = models.CharField(max_length=10, choices=VisitStatus.choices)

    class Meta:
        ordering = ["date", "id"]
        indexes = [models.Index(fields=["client", "-date"])]

    def __str__(self):
        return f"Visit {self.pk} ({self.status}) for client {self.client_id}"


class Remark(models.Model):
    visit = models.ForeignKey(Visit, on_delete=models.CASCADE, related_name="remarks")
    date = models.DateTimeField(default=timezone.now)
    remark = models.TextField()

    class Meta:
        ordering = ["date", "id"]

    def __str__(self):
        return self.remark[:50]
