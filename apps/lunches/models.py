from django.db import models
from django.core.validators import MinValueValidator
import uuid


class PaidPolicy(models.TextChoices):
    """Rule used to decide whether a lunch entry is covered by a payment."""
    MILESTONE = 'milestone', 'Paid-through milestone'
    OVERLAP = 'overlap', 'Explicit interval overlap'


class Member(models.Model):
    """Person who eats lunch with the group."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)

    # Inactive members are hidden from new-entry pickers, history stays
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'members'
        indexes = [
            models.Index(fields=['is_active'], name='members_is_active_idx'),
        ]
        ordering = ['name']

    def __str__(self):
        return self.name


class LunchEntry(models.Model):
    """One member's lunch record for one calendar day."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='lunch_entries'
    )
    date = models.DateField()
    quantity = models.PositiveIntegerField(
        default=1,
        validators=[MinValueValidator(1)]
    )

    # Price per portion in minor units. NULL means "use the default meal
    # price supplied at query time"; it is never back-filled.
    price = models.PositiveIntegerField(null=True, blank=True)
    note = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'lunch_entries'
        unique_together = [['member', 'date']]
        indexes = [
            models.Index(fields=['date'], name='lunch_entries_date_idx'),
            models.Index(fields=['member', 'date'], name='lunch_entries_member_date_idx'),
        ]
        ordering = ['date', 'created_at']

    def __str__(self):
        return f"{self.member.name} - {self.date} x{self.quantity}"


class Payment(models.Model):
    """Settlement of a member's lunches over an inclusive date interval."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    member = models.ForeignKey(
        Member,
        on_delete=models.CASCADE,
        related_name='payments'
    )
    start_date = models.DateField()
    end_date = models.DateField()
    amount = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    note = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'payments'
        indexes = [
            models.Index(fields=['member', 'end_date'], name='payments_member_end_idx'),
            models.Index(fields=['member', 'start_date', 'end_date'], name='payments_member_range_idx'),
            models.Index(fields=['created_at'], name='payments_created_at_idx'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.member.name} paid {self.amount} ({self.start_date} - {self.end_date})"
