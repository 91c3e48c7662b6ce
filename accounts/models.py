# accounts/models.py
from django.conf import settings
from django.contrib.auth.models import AbstractUser
from django.db import models
from django.utils import timezone


class Role(models.TextChoices):
    ADMIN   = "ADMIN", "Admin"
    MANAGER = "MANAGER", "Manager"
    SALES   = "SALES", "Sales"
    VIEWER  = "VIEWER", "Viewer"


class User(AbstractUser):
    """
    Back-office user. `role` sirf audit snapshot / JWT claim ke liye hai,
    endpoint level permission IsAuthenticated hi hai.
    """

    email = models.EmailField(
        unique=True,
        error_messages={"unique": "A user with that email already exists."},
    )

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.SALES,
        help_text="Business role",
    )

    def __str__(self):
        return self.get_full_name() or self.username


class AuthAction(models.TextChoices):
    LOGIN = "login", "Login"
    LOGOUT = "logout", "Logout"
    REGISTER = "register", "Register"
    PASSWORD_CHANGE = "password-change", "Password change"


class AuthLog(models.Model):
    action = models.CharField(max_length=20, choices=AuthAction.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="auth_logs",
    )
    username = models.CharField(max_length=150)
    # refresh token ka jti, logout isi se pair hota hai
    session_id = models.CharField(max_length=255)
    invalidated = models.BooleanField(default=False)
    timestamp = models.DateTimeField(default=timezone.now, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["user", "-timestamp"]),
            models.Index(fields=["action", "-timestamp"]),
        ]

    def __str__(self):
        return f"{self.username} {self.action} @ {self.timestamp:%Y-%m-%d %H:%M}"
