# ==========================================
# apps/lunches/admin.py
# ==========================================

from django.contrib import admin
from django.db.models import Count
from django.utils.html import format_html
from .models import Member, LunchEntry, Payment
from .services.reconciliation import (
    PaidStatusResolver,
    get_active_policy,
    payments_for_members,
)


BADGE_STYLE = (
    '<span style="background: {}; color: {}; padding: 3px 8px; '
    'border-radius: 10px; font-size: 11px;">{}</span>'
)


class LunchEntryInline(admin.TabularInline):
    """Inline admin for a member's lunch entries."""
    model = LunchEntry
    extra = 0
    fields = ['date', 'quantity', 'price', 'note']
    ordering = ['-date']


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    """Admin interface for Members."""

    list_display = [
        'name',
        'active_badge',
        'get_entry_count',
        'get_payment_count',
        'created_at',
    ]
    list_filter = ['is_active', 'created_at']
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [LunchEntryInline]
    ordering = ['name']

    def active_badge(self, obj):
        """Display active flag as colored badge."""
        if obj.is_active:
            return format_html(BADGE_STYLE, '#6B8E5E', 'white', 'Active')
        return format_html(BADGE_STYLE, '#ccc', '#666', 'Inactive')
    active_badge.short_description = 'Status'
    active_badge.admin_order_field = 'is_active'

    def get_entry_count(self, obj):
        return obj.entry_count
    get_entry_count.short_description = 'Entries'
    get_entry_count.admin_order_field = 'entry_count'

    def get_payment_count(self, obj):
        return obj.payment_count
    get_payment_count.short_description = 'Payments'
    get_payment_count.admin_order_field = 'payment_count'

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.annotate(
            entry_count=Count('lunch_entries', distinct=True),
            payment_count=Count('payments', distinct=True),
        )


@admin.register(LunchEntry)
class LunchEntryAdmin(admin.ModelAdmin):
    """
    Admin interface for Lunch Entries.

    The paid badge is computed with the active paid-status policy, so it
    matches what the weekly debt endpoint reports.
    """

    list_display = [
        'member',
        'date',
        'quantity',
        'price',
        'paid_badge',
        'created_at',
    ]
    list_filter = ['date', 'member']
    search_fields = ['member__name', 'note']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'date'
    ordering = ['-date', 'member__name']

    def paid_badge(self, obj):
        """Display paid status as colored badge."""
        resolver = PaidStatusResolver(
            payments_for_members([obj.member_id]),
            get_active_policy()
        )
        if resolver.is_paid(obj.member_id, obj.date):
            return format_html(BADGE_STYLE, '#6B8E5E', 'white', 'Paid')
        return format_html(BADGE_STYLE, '#E5C49A', '#2C1810', 'Unpaid')
    paid_badge.short_description = 'Status'

    def get_queryset(self, request):
        """Optimize query with select_related."""
        qs = super().get_queryset(request)
        return qs.select_related('member')


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Admin interface for Payments."""

    list_display = [
        'member',
        'start_date',
        'end_date',
        'amount',
        'note',
        'created_at',
    ]
    list_filter = ['created_at', 'member']
    search_fields = ['member__name', 'note']
    readonly_fields = ['created_at', 'updated_at']
    date_hierarchy = 'end_date'
    ordering = ['-created_at']

    fieldsets = (
        ('Payment Information', {
            'fields': ('member', 'amount')
        }),
        ('Covered Range', {
            'fields': ('start_date', 'end_date')
        }),
        ('Notes', {
            'fields': ('note',),
            'classes': ('collapse',),
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    def get_queryset(self, request):
        """Optimize query with select_related."""
        qs = super().get_queryset(request)
        return qs.select_related('member')
