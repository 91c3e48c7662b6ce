# channel/models.py
from django.db import models

from setup.models import TimeStamped


class SoftDeleteQuerySet(models.QuerySet):
    def alive(self):
        return self.filter(is_deleted=False)

    def deleted(self):
        return self.filter(is_deleted=True)


class ClientPartner(TimeStamped):
    """
    Client partner (broker company). cpId = CP-<initials>-<6 digits>.
    Delete soft hota hai (is_deleted), hard-delete alag endpoint se.
    """
    cp_id = models.CharField(max_length=40, unique=True, editable=False)
    name = models.CharField(max_length=200)
    owner_name = models.CharField(max_length=200, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone_no = models.CharField(max_length=20, blank=True, default="")
    address = models.TextField(blank=True, default="")
    company_website = models.CharField(max_length=255, blank=True, default="")
    commission_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    is_deleted = models.BooleanField(default=False)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.cp_id} - {self.name}"


class PartnerEmployee(TimeStamped):
    partner = models.ForeignKey(ClientPartner, on_delete=models.CASCADE, related_name="employees")
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone_no = models.CharField(max_length=20)
    alt_no = models.CharField(max_length=20, blank=True, default="")
    position = models.CharField(max_length=100, blank=True, default="")
    commission_percentage = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    is_deleted = models.BooleanField(default=False)

    objects = SoftDeleteQuerySet.as_manager()

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.first_name} {self.last_name}".strip()
