from django.db import models
from django.contrib.auth.models import AbstractUser, BaseUserManager
from country_list import countries_for_language
from auditlog.registry import auditlog
from auditlog.models import AuditlogHistoryField


class CustomUserManager(BaseUserManager):
    """
    Manager for CustomUser. Handles user and superuser creation using email as the unique identifier.
    """
    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError("Email is required.")
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        extra_fields.setdefault('role', CustomUser.ROLE_ADMIN)

        return self.create_user(email, password, **extra_fields)


class CustomUser(AbstractUser):
    """
    Marketplace user. Email is the login; ``role`` is a closed set of
    client, service provider and admin with no legacy aliases.
    """
    ROLE_CLIENT = 'client'
    ROLE_SERVICE_PROVIDER = 'service_provider'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = (
        (ROLE_CLIENT, 'Client'),
        (ROLE_SERVICE_PROVIDER, 'Service Provider'),
        (ROLE_ADMIN, 'Admin'),
    )

    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_CLIENT)
    phone_number = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=50, choices=countries_for_language('en'), blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    email = models.EmailField(unique=True, blank=False)
    username = None

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['first_name', 'last_name']

    objects = CustomUserManager()

    history = AuditlogHistoryField()

    def __str__(self):
        return self.email

    @property
    def is_client(self):
        return self.role == self.ROLE_CLIENT

    @property
    def is_service_provider(self):
        return self.role == self.ROLE_SERVICE_PROVIDER

    @property
    def is_marketplace_admin(self):
        return self.role == self.ROLE_ADMIN or self.is_staff


auditlog.register(CustomUser, exclude_fields=['password', 'last_login'])
