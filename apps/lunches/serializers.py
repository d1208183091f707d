from rest_framework import serializers
from .models import Member, LunchEntry, Payment, PaidPolicy


# =============================================================================
# Input Serializers (request documentation)
# =============================================================================

class MemberInputSerializer(serializers.Serializer):
    """
    Body for creating or updating a member.

    Fields:
        name (str): Display name
        is_active (bool): Whether the member can still log lunches
    """

    name = serializers.CharField(max_length=100, required=False)
    is_active = serializers.BooleanField(required=False)


class LunchEntryInputSerializer(serializers.Serializer):
    """
    Body for creating or updating a lunch entry.

    Fields:
        member_id (UUID): Member who ate
        date (date): Calendar day
        quantity (int): Portions, non-positive values become 1
        price (int): Unit price in minor units, null for the default
        note (str): Free text
    """

    member_id = serializers.UUIDField(required=False)
    date = serializers.DateField(required=False)
    quantity = serializers.IntegerField(required=False)
    price = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    note = serializers.CharField(required=False, allow_blank=True)


class PaymentInputSerializer(serializers.Serializer):
    """Body for recording a payment."""

    member_id = serializers.UUIDField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    amount = serializers.IntegerField(min_value=1)
    note = serializers.CharField(required=False, allow_blank=True)


class SettleInputSerializer(serializers.Serializer):
    """
    Body for settling a member's computed debt.

    Fields:
        member_id (UUID): Member settling up
        start_date (date): Start of the debt range
        end_date (date): End of the debt range
        payment_end_date (date): Settle through this day, defaults to end_date
        meal_price (int): Default unit price for the computation
        note (str): Appended to the generated payment note
    """

    member_id = serializers.UUIDField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    payment_end_date = serializers.DateField(required=False)
    meal_price = serializers.IntegerField(required=False, min_value=0)
    note = serializers.CharField(required=False, allow_blank=True)


class ErrorResponseSerializer(serializers.Serializer):
    error = serializers.CharField()
    code = serializers.CharField()


# =============================================================================
# Output Serializers
# =============================================================================

class MemberSerializer(serializers.ModelSerializer):
    """Serializer for members."""

    class Meta:
        model = Member
        fields = ['id', 'name', 'is_active', 'created_at', 'updated_at']
        read_only_fields = fields


class MemberMinimalSerializer(serializers.ModelSerializer):
    """Minimal member info for nested serialization."""

    class Meta:
        model = Member
        fields = ['id', 'name', 'is_active']
        read_only_fields = fields


class LunchEntrySerializer(serializers.ModelSerializer):
    """Lunch entry with its member joined in."""

    member_id = serializers.UUIDField(read_only=True)
    member = MemberMinimalSerializer(read_only=True)

    class Meta:
        model = LunchEntry
        fields = [
            'id',
            'member_id',
            'member',
            'date',
            'quantity',
            'price',
            'note',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    """Serializer for payments."""

    member_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id',
            'member_id',
            'start_date',
            'end_date',
            'amount',
            'note',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class WeeklyDebtSerializer(serializers.Serializer):
    """One member's unpaid meals and amount."""

    member_id = serializers.UUIDField()
    member_name = serializers.CharField()
    total_meals = serializers.IntegerField()
    total_amount = serializers.IntegerField()


class DebtSummarySerializer(serializers.Serializer):
    """Serializer for a weekly debt computation."""

    start_date = serializers.DateField()
    end_date = serializers.DateField()
    meal_price = serializers.IntegerField()
    policy = serializers.ChoiceField(choices=PaidPolicy.choices)
    debts = WeeklyDebtSerializer(many=True)
    total_amount = serializers.IntegerField()


class EntryPaidStatusSerializer(serializers.Serializer):
    entry_id = serializers.UUIDField()
    is_paid = serializers.BooleanField()
    policy = serializers.ChoiceField(choices=PaidPolicy.choices)


class StatementLineSerializer(serializers.Serializer):
    """Lunch entry on a member statement, flattened with its paid flag."""

    id = serializers.UUIDField(source='entry.id')
    member_id = serializers.UUIDField(source='entry.member_id')
    date = serializers.DateField(source='entry.date')
    quantity = serializers.IntegerField(source='entry.quantity')
    price = serializers.IntegerField(source='entry.price', allow_null=True)
    note = serializers.CharField(source='entry.note')
    effective_price = serializers.IntegerField()
    amount = serializers.IntegerField()
    is_paid = serializers.BooleanField()


class MemberReportSerializer(serializers.Serializer):
    """Serializer for a member statement."""

    member = MemberMinimalSerializer()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    meal_price = serializers.IntegerField()
    policy = serializers.ChoiceField(choices=PaidPolicy.choices)
    lines = StatementLineSerializer(many=True)
    total_amount = serializers.IntegerField()
    unpaid_amount = serializers.IntegerField()
