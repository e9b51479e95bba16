from django.db import models
from django.contrib.auth import get_user_model
from django.core.validators import MinValueValidator

from service_requests.models import ServiceRequest

User = get_user_model()


class Proposal(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_ACTIVE = 'active'
    STATUS_ACCEPTED = 'accepted'
    STATUS_REJECTED = 'rejected'
    STATUS_CANCELED = 'canceled'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACTIVE, 'Active'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_CANCELED, 'Canceled'),
    )

    # A provider holds at most one bid per request in these states.
    LIVE_STATUSES = (STATUS_PENDING, STATUS_ACTIVE, STATUS_ACCEPTED)

    service_request = models.ForeignKey(ServiceRequest, on_delete=models.PROTECT, related_name="proposals")
    service_provider = models.ForeignKey(User, on_delete=models.PROTECT, related_name="proposals")
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    duration_days = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    notes = models.TextField(blank=True, default='')
    attachments = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    rejection_reason = models.TextField(blank=True, default='')
    accepted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['service_request', 'service_provider'],
                condition=models.Q(status__in=('pending', 'active', 'accepted')),
                name='one_live_proposal_per_provider',
            ),
            models.CheckConstraint(condition=models.Q(price__gte=0), name='proposal_price_non_negative'),
            models.CheckConstraint(condition=models.Q(duration_days__gte=1), name='proposal_duration_positive'),
        ]

    def __str__(self):
        return f"Proposal {self.pk} by {self.service_provider} on {self.service_request_id}"
