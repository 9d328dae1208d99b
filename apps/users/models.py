"""User domain models for the Braida marketplace.

The platform has three roles: clients book beauty services, freelancers
sell them and admins moderate the marketplace. Accounts carry the
verification flags the booking and payout flows depend on, a moderation
status, and the failed-login lockout used by the auth endpoints.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone number. Use the international format without spaces."),
)


class CustomUserManager(BaseUserManager):
    """Manager that uses email as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("An email address is required.")
        email = self.normalize_email(email)

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.CLIENT)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    def admins(self):
        return self.filter(
            models.Q(role=CustomUser.RoleChoices.ADMIN) | models.Q(is_superuser=True),
            is_active=True,
        )

    @staticmethod
    def normalize_phone(phone: str) -> str:
        return phone.replace(" ", "").replace("-", "")


class CustomUser(AbstractUser):
    """Marketplace account."""

    class RoleChoices(models.TextChoices):
        CLIENT = "client", _("Client")
        FREELANCER = "freelancer", _("Freelancer")
        ADMIN = "admin", _("Admin")

    class AccountStatus(models.TextChoices):
        ACTIVE = "active", _("Active")
        SUSPENDED = "suspended", _("Suspended")
        DEACTIVATED = "deactivated", _("Deactivated")

    username = models.CharField(
        _("Display name"),
        max_length=150,
        blank=True,
        help_text=_("Optional, shown in the apps and in notifications."),
    )
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(
        _("Phone"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.CLIENT,
    )
    status = models.CharField(
        _("Account status"),
        max_length=20,
        choices=AccountStatus.choices,
        default=AccountStatus.ACTIVE,
    )
    is_verified = models.BooleanField(
        _("Contact details verified"),
        default=False,
        help_text=_("Email or phone confirmed. Required before a client can book."),
    )
    is_verified_freelancer = models.BooleanField(
        _("Verified freelancer"),
        default=False,
        help_text=_("Identity and portfolio checked by an admin. Required for payouts."),
    )
    suspended_at = models.DateTimeField(null=True, blank=True)
    suspension_reason = models.CharField(max_length=255, blank=True)
    failed_login_attempts = models.PositiveIntegerField(default=0)
    locked_until = models.DateTimeField(_("Locked until"), null=True, blank=True)
    last_activity_at = models.DateTimeField(_("Last activity"), null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["role", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    @property
    def display_name(self) -> str:
        full_name = self.get_full_name()
        return full_name or self.username or self.email

    # --- Role helpers ---------------------------------------------------------
    def is_client(self) -> bool:
        return self.role == self.RoleChoices.CLIENT

    def is_freelancer(self) -> bool:
        return self.role == self.RoleChoices.FREELANCER

    def is_platform_admin(self) -> bool:
        return self.role == self.RoleChoices.ADMIN or self.is_superuser

    @property
    def is_account_active(self) -> bool:
        return self.is_active and self.status == self.AccountStatus.ACTIVE

    # --- Moderation -----------------------------------------------------------
    def mark_verified(self) -> None:
        self.is_verified = True
        self.save(update_fields=["is_verified", "updated_at"])

    def mark_verified_freelancer(self) -> None:
        self.is_verified_freelancer = True
        self.save(update_fields=["is_verified_freelancer", "updated_at"])

    def suspend(self, reason: str = "") -> None:
        self.status = self.AccountStatus.SUSPENDED
        self.suspended_at = timezone.now()
        self.suspension_reason = reason
        self.save(update_fields=["status", "suspended_at", "suspension_reason", "updated_at"])

    def reactivate(self) -> None:
        self.status = self.AccountStatus.ACTIVE
        self.suspended_at = None
        self.suspension_reason = ""
        self.save(update_fields=["status", "suspended_at", "suspension_reason", "updated_at"])

    # --- Login lockout --------------------------------------------------------
    @property
    def is_locked(self) -> bool:
        return bool(self.locked_until and self.locked_until > timezone.now())

    def lock(self, minutes: int = 15) -> None:
        self.locked_until = timezone.now() + timezone.timedelta(minutes=minutes)
        self.failed_login_attempts = 0
        self.save(update_fields=["locked_until", "failed_login_attempts"])

    def unlock(self) -> None:
        self.locked_until = None
        self.failed_login_attempts = 0
        self.save(update_fields=["locked_until", "failed_login_attempts"])

    def register_failed_attempt(self, threshold: int = 5) -> None:
        self.failed_login_attempts += 1
        if self.failed_login_attempts >= threshold:
            self.lock()
            return
        self.save(update_fields=["failed_login_attempts"])

    def touch_last_activity(self) -> None:
        self.last_activity_at = timezone.now()
        self.save(update_fields=["last_activity_at"])


class FreelancerProfile(models.Model):
    """Public profile of a freelancer, with cached review statistics."""

    user = models.OneToOneField(
        CustomUser,
        on_delete=models.CASCADE,
        related_name="freelancer_profile",
    )
    bio = models.TextField(blank=True)
    city = models.CharField(max_length=100, blank=True)
    postcode = models.CharField(max_length=10, blank=True)
    specialties = models.JSONField(default=list, blank=True)
    profile_photo = models.ImageField(upload_to="freelancers/", blank=True, null=True)
    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0), MaxValueValidator(5)],
    )
    total_reviews = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Freelancer profile")
        verbose_name_plural = _("Freelancer profiles")

    def __str__(self) -> str:
        return f"Profile of {self.user.display_name}"


class PasswordResetToken(models.Model):
    """Time-limited password reset code with a small number of attempts."""

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name="password_reset_tokens",
    )
    code = models.CharField(max_length=6)
    expires_at = models.DateTimeField()
    attempts_left = models.PositiveSmallIntegerField(default=3)
    is_used = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Password reset token")
        verbose_name_plural = _("Password reset tokens")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["code", "expires_at"]),
        ]

    def __str__(self) -> str:
        return f"Reset token for {self.user_id}"

    @property
    def is_expired(self) -> bool:
        return timezone.now() >= self.expires_at

    def mark_used(self) -> None:
        self.is_used = True
        self.save(update_fields=["is_used"])

    def decrement_attempt(self) -> None:
        if self.attempts_left > 0:
            self.attempts_left -= 1
            self.save(update_fields=["attempts_left"])


# Short alias used across tests and services
User = CustomUser
