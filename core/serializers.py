from rest_framework import serializers

from orders.models import Sale
from .models import StoreSetting

PUBLIC_SETTING_FIELDS = [
    'store_name', 'currency_code', 'currency_symbol', 'phone', 'address', 'city', 'country',
    'tax_rate', 'language', 'online_orders_enabled', 'online_orders_start_time',
    'online_orders_end_time', 'online_orders_days', 'accept_cash', 'accept_mobile_payments',
    'default_payment_method', 'mobile_money_number',
]


class StoreSettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = StoreSetting
        exclude = ['id']
        read_only_fields = ['created_at', 'updated_at']

    def validate_tax_rate(self, value):
        if value < 0:
            raise serializers.ValidationError("Tax rate cannot be negative")
        return value

    def validate_online_orders_days(self, value):
        if not isinstance(value, list) or not all(
            isinstance(day, int) and not isinstance(day, bool) and 0 <= day <= 6 for day in value
        ):
            raise serializers.ValidationError("online_orders_days must contain integers 0-6")
        return sorted(set(value))

    def validate_default_payment_method(self, value):
        if value not in dict(Sale.PAYMENT_METHOD_CHOICES):
            raise serializers.ValidationError(f"Unknown payment method '{value}'")
        return value


class PublicStoreSettingSerializer(serializers.ModelSerializer):
    """What the public online order page may see"""
    class Meta:
        model = StoreSetting
        fields = PUBLIC_SETTING_FIELDS
        read_only_fields = fields
