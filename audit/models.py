# audit/models.py
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from django.utils import timezone


class AuditAction(models.TextChoices):
    CREATE = "create", "Create"
    UPDATE = "update", "Update"
    DELETE = "delete", "Delete"
    LOCKED = "locked", "Locked"
    UNLOCKED = "unlocked", "Unlocked"


class AuditLog(models.Model):
    """
    One row per mutation. `changes` is free-form JSON:
      create/delete -> snapshot, update -> {"before": ..., "after": ...}
    Actor is stored as a snapshot (id/username/roles) so logs survive user deletion.
    """
    action = models.CharField(max_length=10, choices=AuditAction.choices, db_index=True)
    changes = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)

    actor_user_id = models.CharField(max_length=64, db_index=True)
    actor_username = models.CharField(max_length=150)
    actor_roles = models.JSONField(default=list, blank=True)

    source = models.CharField(max_length=100, db_index=True)
    description = models.TextField()
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["actor_user_id", "-timestamp"]),
            models.Index(fields=["source", "-timestamp"]),
            models.Index(fields=["action", "-timestamp"]),
        ]

    def __str__(self):
        return f"{self.action} {self.source} by {self.actor_username}"
