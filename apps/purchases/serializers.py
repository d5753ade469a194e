from rest_framework import serializers

from .services.purchase_workflow import DEFAULT_PAYMENT_METHOD, PAYMENT_METHODS


class TransactionSerializer(serializers.Serializer):
    """One ledger entry."""

    id = serializers.IntegerField()
    customer_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=None, decimal_places=2)
    signed_amount = serializers.DecimalField(max_digits=None, decimal_places=2)
    date_time = serializers.CharField()
    payment_method = serializers.CharField()
    status = serializers.BooleanField()
    is_credit = serializers.BooleanField()


class PurchaseCreateSerializer(serializers.Serializer):
    """Input for buying a course."""

    course_id = serializers.IntegerField(min_value=1)
    payment_method = serializers.ChoiceField(
        choices=list(PAYMENT_METHODS.items()),
        default=DEFAULT_PAYMENT_METHOD,
    )


class PurchaseReceiptSerializer(serializers.Serializer):
    course_id = serializers.IntegerField()
    course_title = serializers.CharField()
    price = serializers.DecimalField(max_digits=None, decimal_places=2)
    payment_method = serializers.CharField()
    balance = serializers.DecimalField(max_digits=None, decimal_places=2)
    purchase_date = serializers.CharField()
    transaction_id = serializers.IntegerField(allow_null=True)
    already_owned = serializers.BooleanField()


class LedgerSummarySerializer(serializers.Serializer):
    credits = serializers.DecimalField(max_digits=None, decimal_places=2)
    debits = serializers.DecimalField(max_digits=None, decimal_places=2)
    net = serializers.DecimalField(max_digits=None, decimal_places=2)
    count = serializers.IntegerField()


class ReconciliationSerializer(serializers.Serializer):
    opening_balance = serializers.DecimalField(max_digits=None, decimal_places=2)
    expected_balance = serializers.DecimalField(max_digits=None, decimal_places=2)
    stored_balance = serializers.DecimalField(max_digits=None, decimal_places=2)
    difference = serializers.DecimalField(max_digits=None, decimal_places=2)
    is_consistent = serializers.BooleanField()
    summary = LedgerSummarySerializer()


class LedgerQuerySerializer(serializers.Serializer):
    opening_balance = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, default=0,
    )
