# rad_core/iam/models.py
from __future__ import annotations

import uuid

from django.conf import settings
from django.contrib.auth.base_user import AbstractBaseUser, BaseUserManager
from django.contrib.auth.models import PermissionsMixin
from django.core.exceptions import ValidationError
from django.db import models

from rad_core.iam.roles import Role, is_valid_role


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class UserManager(BaseUserManager):
    use_in_migrations = True

    def create_user(self, email: str, password: str | None = None, **extra):
        email = normalize_email(email)
        if not email:
            raise ValueError("Email is required.")
        extra.setdefault("username", email.split("@", 1)[0])
        user = self.model(email=email, **extra)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email: str, password: str | None = None, **extra):
        extra.setdefault("role", Role.SUPER_ADMIN)
        extra.setdefault("is_staff", True)
        extra.setdefault("is_superuser", True)
        return self.create_user(email, password, **extra)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Credential holder.

    `role` is the primary role shown in the UI; `account_roles` adds extra
    capabilities. Authorization always looks at the union of both.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    email = models.EmailField(unique=True)
    username = models.CharField(max_length=150, db_index=True)
    full_name = models.CharField(max_length=255, blank=True, default="")

    # admin-issued credential shown once to the creator; never a login secret
    temp_password = models.CharField(max_length=128, blank=True, default="")

    role = models.CharField(max_length=32, choices=Role.choices, db_index=True)
    account_roles = models.JSONField(default=list, blank=True)

    organization = models.ForeignKey(
        "organizations.Organization",
        on_delete=models.PROTECT,
        related_name="users",
        null=True,
        blank=True,
    )
    organization_identifier = models.CharField(max_length=32, blank=True, default="", db_index=True)

    lab = models.ForeignKey(
        "labs.Lab",
        on_delete=models.SET_NULL,
        related_name="staff",
        null=True,
        blank=True,
    )
    linked_labs = models.ManyToManyField("labs.Lab", related_name="linked_users", blank=True)

    is_active = models.BooleanField(default=True, db_index=True)
    is_staff = models.BooleanField(default=False)

    is_logged_in = models.BooleanField(default=False)
    last_login_at = models.DateTimeField(null=True, blank=True)
    last_logout_at = models.DateTimeField(null=True, blank=True)
    login_count = models.PositiveIntegerField(default=0)

    visible_columns = models.JSONField(default=list, blank=True)

    created_by = models.ForeignKey(
        "self",
        on_delete=models.SET_NULL,
        related_name="+",
        null=True,
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["role"]

    class Meta:
        db_table = "iam_user"
        indexes = [
            models.Index(fields=["organization_identifier", "role"]),
            models.Index(fields=["organization_identifier", "is_active"]),
        ]

    def __str__(self) -> str:
        return self.email

    @property
    def is_super_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN

    def clean(self):
        super().clean()
        if not is_valid_role(self.role):
            raise ValidationError({"role": f"Invalid role '{self.role}'."})
        bad = [r for r in (self.account_roles or []) if not is_valid_role(str(r))]
        if bad:
            raise ValidationError({"account_roles": f"Invalid roles: {bad}"})
        self._check_invariants()

    def _check_invariants(self) -> None:
        if Role.SUPER_ADMIN in (self.account_roles or []):
            raise ValidationError({"account_roles": "super_admin cannot be granted as an account role."})
        if not self.is_super_admin and not self.organization_id:
            raise ValidationError({"organization": "Non super_admin users must belong to an organization."})

    def save(self, *args, **kwargs):
        self.email = normalize_email(self.email)
        self._check_invariants()
        if self.organization_id:
            self.organization_identifier = self.organization.identifier
        super().save(*args, **kwargs)


class DoctorProfile(models.Model):
    """
    Extra profile for doctor_account users (signature, licence).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="doctor_profile")
    organization_identifier = models.CharField(max_length=32, db_index=True)

    specialization = models.CharField(max_length=255, blank=True, default="")
    license_number = models.CharField(max_length=64, blank=True, default="")
    signature = models.TextField(blank=True, default="")
    is_active_profile = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_doctor_profile"

    def __str__(self) -> str:
        return f"DoctorProfile({self.user_id})"
