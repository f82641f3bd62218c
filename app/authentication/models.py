"""
Authentication models.

- User: Email-identified account carrying the actor role and, for platform
  admins, the set of governorates they are responsible for.

Related files:
    - managers.py: Custom user manager for email-based creation
    - access.py: AccessContext built from a User for service calls
"""

from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models

from authentication.managers import UserManager


class UserRole(models.TextChoices):
    """
    Actor roles.

    CUSTOMER places orders and opens refunds (upstream flows).
    PROVIDER operates a provider's order board.
    ADMIN reviews refunds, optionally restricted to assigned governorates.
    """

    CUSTOMER = "customer", "Customer"
    PROVIDER = "provider", "Provider Operator"
    ADMIN = "admin", "Platform Admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique, used for login
        full_name: Display name (shown in refund search results)
        phone: Contact number
        role: Actor role (customer, provider, admin)
        is_super_admin: Admin sees every governorate
        assigned_governorates: Governorates a regional admin is scoped to
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created
        updated_at: When the user record was last modified
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )

    full_name = models.CharField(
        max_length=150,
        blank=True,
        default="",
        help_text="User's display name",
    )

    phone = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Contact phone number",
    )

    role = models.CharField(
        max_length=16,
        choices=UserRole.choices,
        default=UserRole.CUSTOMER,
        db_index=True,
        help_text="Actor role on the platform",
    )

    is_super_admin = models.BooleanField(
        default=False,
        help_text="Platform admin with access to every governorate",
    )

    assigned_governorates = models.ManyToManyField(
        "providers.Governorate",
        blank=True,
        related_name="admins",
        help_text="Governorates a regional admin may act on",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = []

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["-date_joined"]

    def __str__(self):
        return self.email

    def get_full_name(self):
        return self.full_name or self.email

    def get_short_name(self):
        return self.full_name.split(" ")[0] if self.full_name else self.email

    @property
    def is_platform_admin(self) -> bool:
        return self.role == UserRole.ADMIN or self.is_super_admin

    @property
    def is_provider_operator(self) -> bool:
        return self.role == UserRole.PROVIDER
