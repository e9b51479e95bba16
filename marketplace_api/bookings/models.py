import uuid
from decimal import Decimal

from django.db import models
from django.contrib.auth import get_user_model
from django.core.validators import MaxValueValidator, MinValueValidator
from auditlog.registry import auditlog

from proposals.models import Proposal
from service_requests.models import ServiceRequest

User = get_user_model()


class Booking(models.Model):
    """
    The funded engagement created when a client accepts a proposal.

    ``price``, ``duration_days`` and ``notes`` are copied from the proposal at
    acceptance and never follow later proposal edits.
    """
    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'
    STATUS_IN_PROGRESS = 'in-progress'
    STATUS_PENDING_REVIEW = 'pending-review'
    STATUS_SUSPENDED = 'suspended'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELED = 'canceled'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_PENDING_REVIEW, 'Pending Review'),
        (STATUS_SUSPENDED, 'Suspended'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELED, 'Canceled'),
    )
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELED)

    PAYMENT_PENDING = 'pending'
    PAYMENT_HELD = 'held'
    PAYMENT_RELEASED = 'released'
    PAYMENT_REFUNDED = 'refunded'
    PAYMENT_FAILED = 'failed'

    PAYMENT_STATUS_CHOICES = (
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_HELD, 'Held'),
        (PAYMENT_RELEASED, 'Released'),
        (PAYMENT_REFUNDED, 'Refunded'),
        (PAYMENT_FAILED, 'Failed'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    client = models.ForeignKey(User, on_delete=models.PROTECT, related_name='client_bookings')
    service_provider = models.ForeignKey(User, on_delete=models.PROTECT, related_name='provider_bookings')
    service_request = models.ForeignKey(ServiceRequest, on_delete=models.PROTECT, related_name='bookings')
    offer = models.OneToOneField(Proposal, on_delete=models.PROTECT, related_name='booking')

    price = models.DecimalField(max_digits=12, decimal_places=2)
    duration_days = models.PositiveIntegerField()
    notes = models.TextField(blank=True, default='')

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    deadline = models.DateTimeField(null=True, blank=True)
    start_date = models.DateTimeField(null=True, blank=True)

    timeline = models.JSONField(default=list, blank=True)  # [{event, date, description}]
    history_logs = models.JSONField(default=list, blank=True)  # [{action, admin_id, timestamp, details}]
    warnings = models.JSONField(default=list, blank=True)
    risk_score = models.PositiveSmallIntegerField(
        default=0, validators=[MinValueValidator(0), MaxValueValidator(100)]
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['service_request'],
                condition=~models.Q(status='canceled'),
                name='one_open_booking_per_request',
            ),
        ]

    def __str__(self):
        return f"Booking {self.pk} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def held_amount(self):
        return self.price if self.payment_status == self.PAYMENT_HELD else Decimal('0.00')

    def correlation(self):
        return {
            'request_id': self.service_request_id,
            'proposal_id': self.offer_id,
            'booking_id': self.pk,
        }


auditlog.register(Booking, exclude_fields=['timeline', 'history_logs'])
