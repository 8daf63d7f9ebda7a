"""
Normalisation of order payloads sent by the POS and online-order frontends.

Older clients send the same value under several names (``customerName`` at
the top level, ``customerInfo.name`` nested, ``tax`` instead of
``taxAmount`` ...). Every accepted spelling is listed here, mapped to the one
snake_case field the order serializers validate. For each canonical field the
first non-empty source in the list wins.
"""
import json
from collections.abc import Mapping

from rest_framework import serializers

# canonical field -> accepted source paths, highest priority first
ORDER_FIELD_ALIASES = {
    'customer_id': ['customer_id', 'customerId'],
    'customer_name': ['customer_name', 'customerName', 'customerInfo.name'],
    'customer_phone': ['customer_phone', 'customerPhone', 'customerInfo.phone'],
    'customer_email': ['customer_email', 'customerEmail', 'customerInfo.email'],
    'delivery_address': ['delivery_address', 'deliveryAddress', 'customerInfo.address'],
    'payment_method': ['payment_method', 'paymentMethod', 'customerInfo.paymentMethod'],
    'payment_status': ['payment_status', 'paymentStatus'],
    'subtotal': ['subtotal'],
    'tax_amount': ['tax_amount', 'taxAmount', 'tax'],
    'discount_amount': ['discount_amount', 'discountAmount'],
    'total_amount': ['total_amount', 'totalAmount', 'total'],
    'notes': ['notes'],
}

ITEM_FIELD_ALIASES = {
    'product_id': ['product_id', 'productId', 'id'],
    'quantity': ['quantity', 'qty'],
    'unit_price': ['unit_price', 'unitPrice', 'price'],
    'discount': ['discount'],
    'total_price': ['total_price', 'totalPrice'],
    'notes': ['notes'],
}

# frontend spelling -> Sale.payment_method
PAYMENT_METHOD_ALIASES = {
    'cash': 'cash',
    'cashOnDelivery': 'cash',
    'cash_on_delivery': 'cash',
    'mobileMoney': 'mobile_payment',
    'mobile_payment': 'mobile_payment',
    'online': 'online',
    'credit_card': 'credit_card',
    'creditCard': 'credit_card',
    'debit_card': 'debit_card',
    'debitCard': 'debit_card',
    'other': 'other',
}
DEFAULT_PAYMENT_METHOD = 'cash'


def _lookup(data, path):
    value = data
    for key in path.split('.'):
        if not hasattr(value, 'get'):
            return None
        value = value.get(key)
    return value


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def apply_aliases(data, aliases):
    """Build a dict of canonical fields from the first non-blank alias of each"""
    normalized = {}
    for field, paths in aliases.items():
        for path in paths:
            value = _lookup(data, path)
            if not _is_blank(value):
                normalized[field] = value
                break
    return normalized


def normalize_payment_method(value):
    """Map a frontend payment method to a Sale choice; unknown or blank means cash"""
    if _is_blank(value):
        return DEFAULT_PAYMENT_METHOD
    return PAYMENT_METHOD_ALIASES.get(str(value).strip(), DEFAULT_PAYMENT_METHOD)


def extract_order_data(data):
    """
    Return the order payload as a plain dict.

    Multipart requests carry the order as a JSON string in ``orderData``.
    """
    if not isinstance(data, Mapping):
        raise serializers.ValidationError({'orderData': 'Invalid order data format'})

    raw = data.get('orderData')
    if raw is None:
        if hasattr(data, 'dict'):
            return data.dict()
        return dict(data)

    if isinstance(raw, dict):
        return raw
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        raise serializers.ValidationError({'orderData': 'Invalid order data format'})
    if not isinstance(parsed, dict):
        raise serializers.ValidationError({'orderData': 'Invalid order data format'})
    return parsed


def normalize_order_payload(data):
    """Canonical order dict, with items normalised through ITEM_FIELD_ALIASES"""
    order_data = extract_order_data(data)
    normalized = apply_aliases(order_data, ORDER_FIELD_ALIASES)
    normalized['payment_method'] = normalize_payment_method(normalized.get('payment_method'))

    items = order_data.get('items')
    if isinstance(items, list):
        normalized['items'] = [
            apply_aliases(item, ITEM_FIELD_ALIASES) if isinstance(item, dict) else item
            for item in items
        ]
    elif items is not None:
        normalized['items'] = items
    return normalized
