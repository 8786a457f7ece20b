"""
Identity and Identity Profile.

User is the identity known to the identity provider (login, password,
JWT subject). Profile is created for it automatically and exactly once
(see accounts.signals) and shares its primary key.
Email is the USERNAME_FIELD for allauth compatibility.
"""
import uuid

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models, transaction
from django.utils.translation import gettext_lazy as _


class AppRole(models.TextChoices):
    USER = "user", _("User")
    MERCHANT = "merchant", _("Merchant")


class UserManager(BaseUserManager):
    """Custom manager for email-based auth."""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Users must have an email address")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """
    External identity with email as primary identifier.
    metadata carries the signup metadata (full_name, role) that seeds the Profile.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    username = None
    email = models.EmailField(unique=True, verbose_name=_("email address"))
    metadata = models.JSONField(
        default=dict,
        blank=True,
        verbose_name=_("metadata"),
        help_text=_("Signup metadata, e.g. full_name and role."),
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = _("user")
        verbose_name_plural = _("users")

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        # Profile provisioning runs in post_save; a failure there must undo the insert.
        with transaction.atomic(using=kwargs.get("using")):
            super().save(*args, **kwargs)


class Profile(models.Model):
    """One per identity. Key shared with User and never reassigned."""

    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="profile",
        db_column="id",
        verbose_name=_("user"),
    )
    email = models.EmailField(
        verbose_name=_("email"),
        help_text=_("Contact email, copied from the identity at signup."),
    )
    full_name = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        verbose_name=_("full name"),
    )
    role = models.CharField(
        max_length=20,
        choices=AppRole.choices,
        default=AppRole.USER,
        verbose_name=_("role"),
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name=_("created at"),
    )

    immutable_fields = ("user",)

    class Meta:
        verbose_name = _("profile")
        verbose_name_plural = _("profiles")
        constraints = [
            models.CheckConstraint(
                condition=models.Q(role__in=AppRole.values),
                name="profile_role_valid",
            )
        ]

    def __str__(self):
        return f"{self.email} ({self.role})"

    @property
    def is_merchant(self):
        return self.role == AppRole.MERCHANT
