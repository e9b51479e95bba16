from django.db import models
from django.contrib.auth import get_user_model

User = get_user_model()


class ServiceRequest(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_SUBMITTED = 'submitted'
    STATUS_OPEN = 'open'
    STATUS_IN_PROGRESS = 'in-progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELED = 'canceled'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_SUBMITTED, 'Submitted'),
        (STATUS_OPEN, 'Open'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELED, 'Canceled'),
        (STATUS_REJECTED, 'Rejected'),
    )

    # Providers may bid while the request is in one of these states.
    PROPOSABLE_STATUSES = (STATUS_SUBMITTED, STATUS_OPEN)

    client = models.ForeignKey(User, related_name='service_requests', on_delete=models.PROTECT)
    title = models.CharField(max_length=255)
    description = models.TextField()
    attachments = models.JSONField(default=list, blank=True)
    budget = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    deadline = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    rejection_reason = models.TextField(blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.title} ({self.client})"

    @property
    def accepts_proposals(self):
        return self.status in self.PROPOSABLE_STATUSES
