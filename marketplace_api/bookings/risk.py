"""
Risk scoring for bookings.

The score is an advisory signal for the admin order views. It never changes a
booking's status on its own.
"""
from decimal import Decimal

from django.utils import timezone

MAX_SCORE = 100
HIGH_VALUE_PRICE = Decimal('5000')
SHORT_BOOKING_DAYS = 7
DEADLINE_WARNING_DAYS = 2


def _days(delta):
    return delta.total_seconds() / 86400


def calculate_risk_score(booking, now=None):
    """Return ``(score, factors)`` for ``booking``; score is capped at 100."""
    now = now or timezone.now()
    score = 0
    factors = []

    if booking.deadline and not booking.is_terminal:
        days_left = _days(booking.deadline - now)
        if days_left < 0:
            score += 25
            factors.append({'factor': 'deadline_passed', 'severity': 'high', 'details': 'Deadline has passed'})
        elif days_left < DEADLINE_WARNING_DAYS:
            score += 12
            factors.append({
                'factor': 'deadline_approaching',
                'severity': 'medium',
                'details': f'Deadline in {int(days_left)} days',
            })

    if booking.deadline and booking.created_at:
        booked_days = _days(booking.deadline - booking.created_at)
        if booking.price > HIGH_VALUE_PRICE and booked_days < SHORT_BOOKING_DAYS:
            score += 10
            factors.append({
                'factor': 'high_value_short_deadline',
                'severity': 'medium',
                'details': f'High value ({booking.price}) with short deadline ({int(booked_days)} days)',
            })

    if booking.payment_status == booking.PAYMENT_FAILED:
        score += 15
        factors.append({'factor': 'payment_failed', 'severity': 'high', 'details': 'Payment transaction failed'})

    if booking.status == booking.STATUS_SUSPENDED:
        score += 30
        factors.append({'factor': 'order_suspended', 'severity': 'critical', 'details': 'Order has been suspended'})

    return min(score, MAX_SCORE), factors
