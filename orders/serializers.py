from rest_framework import serializers
from django.db import transaction
from decimal import Decimal, ROUND_HALF_UP
from .models import Customer, Sale, SaleItem
from inventory.models import Product
from authentication.models import CustomUser
from core.id_converter import get_display_id
from notifications.models import Notification
from notifications.services import create_system_notification

CENT = Decimal('0.01')
RECEIPT_REQUIRED_METHODS = ('mobile_payment', 'online')


def _money(value):
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = ['id', 'name', 'phone', 'email', 'address', 'created_at']
        read_only_fields = ['id', 'created_at']


class CustomerLookupSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    address = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if not attrs['email'] and not attrs['phone']:
            raise serializers.ValidationError("Email or phone is required")
        return attrs


class SaleItemCreateSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)
    discount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
    total_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    notes = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class SaleItemReadSerializer(serializers.ModelSerializer):
    product_id = serializers.UUIDField(source='product.id', read_only=True)
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = SaleItem
        fields = [
            'id', 'product_id', 'product_name', 'quantity', 'unit_price',
            'discount', 'subtotal', 'total_price', 'notes'
        ]


class SaleReadSerializer(serializers.ModelSerializer):
    items = SaleItemReadSerializer(many=True, read_only=True)
    customer = CustomerSerializer(read_only=True)
    created_by_name = serializers.SerializerMethodField()
    display_id = serializers.SerializerMethodField()
    numeric_id = serializers.IntegerField(source='related_id', read_only=True)
    transaction_image_url = serializers.SerializerMethodField()

    class Meta:
        model = Sale
        fields = [
            'id', 'display_id', 'numeric_id', 'receipt_number', 'sale_date',
            'customer', 'created_by_name', 'subtotal', 'tax_amount', 'discount_amount',
            'total_amount', 'payment_method', 'payment_status', 'status', 'source',
            'notes', 'customer_name', 'customer_phone', 'customer_email',
            'delivery_address', 'transaction_image_url', 'items', 'created_at', 'updated_at'
        ]

    def get_display_id(self, obj):
        config = self.context.get('config')
        length = config.display_id_length if config else 8
        return get_display_id(obj.id, length)

    def get_created_by_name(self, obj):
        if obj.created_by is None:
            return None
        return obj.created_by.full_name or obj.created_by.email

    def get_transaction_image_url(self, obj):
        if not obj.transaction_image:
            return None
        request = self.context.get('request')
        url = obj.transaction_image.url
        return request.build_absolute_uri(url) if request else url


class BaseSaleCreateSerializer(serializers.Serializer):
    """Fields and item handling shared by POS sales and online orders"""
    items = SaleItemCreateSerializer(many=True)
    customer_id = serializers.IntegerField(required=False, allow_null=True)
    tax_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)
    discount_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)
    payment_method = serializers.ChoiceField(choices=Sale.PAYMENT_METHOD_CHOICES, default='cash')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Order must contain at least one item")

        product_ids = {item['product_id'] for item in value}
        products = Product.objects.in_bulk(list(product_ids))
        inactive = [str(pid) for pid in product_ids if pid not in products or not products[pid].is_active]
        if inactive:
            raise serializers.ValidationError(f"Products not found or inactive: {', '.join(sorted(inactive))}")

        for item in value:
            item['product'] = products[item['product_id']]
            if item.get('unit_price') is None:
                item['unit_price'] = item['product'].price
        return value

    def validate_customer_id(self, value):
        if value is not None and not Customer.objects.filter(pk=value).exists():
            raise serializers.ValidationError("Customer not found")
        return value

    def items_subtotal(self, items):
        return _money(sum((item['quantity'] * item['unit_price'] for item in items), Decimal('0')))

    def create_items(self, sale, items):
        sale_items = []
        for item in items:
            subtotal = _money(item['quantity'] * item['unit_price'])
            total_price = item.get('total_price')
            if total_price is None:
                total_price = subtotal - item['discount']
            sale_items.append(SaleItem(
                sale=sale,
                product=item['product'],
                quantity=item['quantity'],
                unit_price=item['unit_price'],
                discount=item['discount'],
                subtotal=subtotal,
                total_price=total_price,
                notes=item.get('notes', ''),
            ))
        SaleItem.objects.bulk_create(sale_items)
        return sale_items


class PosSaleCreateSerializer(BaseSaleCreateSerializer):
    """Sale rung up at the counter"""
    payment_status = serializers.ChoiceField(choices=Sale.PAYMENT_STATUS_CHOICES, default='paid')
    receipt_number = serializers.CharField(max_length=50, required=False, allow_blank=True)

    def validate_receipt_number(self, value):
        if value and Sale.all_objects.filter(receipt_number=value).exists():
            raise serializers.ValidationError("Receipt number already used")
        return value or None

    @transaction.atomic
    def create(self, validated_data):
        items = validated_data.pop('items')
        request = self.context.get('request')

        sale = Sale.objects.create(
            customer_id=validated_data.get('customer_id'),
            created_by=request.user,
            receipt_number=validated_data.get('receipt_number'),
            tax_amount=validated_data.get('tax_amount') or Decimal('0'),
            discount_amount=validated_data.get('discount_amount') or Decimal('0'),
            payment_method=validated_data['payment_method'],
            payment_status=validated_data['payment_status'],
            status=Sale.STATUS_COMPLETED,
            source=Sale.SOURCE_POS,
            notes=validated_data.get('notes', ''),
        )
        self.create_items(sale, items)

        sale.calculate_totals()
        sale.save(update_fields=['subtotal', 'total_amount', 'updated_at'])
        return sale


class OnlineOrderCreateSerializer(BaseSaleCreateSerializer):
    """
    Online order placed from the public order page.

    Expects the payload already normalised by orders.adapters.
    """
    payment_status = serializers.ChoiceField(choices=Sale.PAYMENT_STATUS_CHOICES, default='pending')
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)
    total_amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0'), required=False)
    customer_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    customer_phone = serializers.CharField(max_length=20, required=False, allow_blank=True, default='')
    customer_email = serializers.EmailField(required=False, allow_blank=True, default='')
    delivery_address = serializers.CharField(required=False, allow_blank=True, default='')
    transaction_image = serializers.FileField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs['payment_method'] in RECEIPT_REQUIRED_METHODS and not attrs.get('transaction_image'):
            raise serializers.ValidationError({
                'transaction_image': 'A payment receipt image is required for mobile or online payments'
            })

        # Fill totals the client did not send
        subtotal = attrs.get('subtotal')
        if subtotal is None:
            subtotal = self.items_subtotal(attrs['items'])
        tax_amount = attrs.get('tax_amount') or Decimal('0')
        discount_amount = attrs.get('discount_amount') or Decimal('0')
        total_amount = attrs.get('total_amount')
        if total_amount is None:
            total_amount = subtotal + tax_amount - discount_amount

        attrs['subtotal'] = _money(subtotal)
        attrs['tax_amount'] = _money(tax_amount)
        attrs['discount_amount'] = _money(discount_amount)
        attrs['total_amount'] = _money(total_amount)
        return attrs

    def find_or_create_customer(self, validated_data):
        customer_id = validated_data.get('customer_id')
        if customer_id is not None:
            return Customer.objects.get(pk=customer_id)

        name = validated_data['customer_name']
        phone = validated_data['customer_phone']
        email = validated_data['customer_email']
        address = validated_data['delivery_address']
        if not (name or phone or email):
            return None

        customer, _ = Customer.objects.find_or_create(name=name, email=email, phone=phone, address=address)
        return customer

    def resolve_created_by(self, config):
        request = self.context.get('request')
        if request is not None and request.user.is_authenticated:
            return request.user
        if config.default_admin_id:
            return CustomUser.objects.filter(pk=config.default_admin_id).first()
        return None

    @transaction.atomic
    def create(self, validated_data):
        config = self.context['config']
        items = validated_data.pop('items')

        sale = Sale.objects.create(
            customer=self.find_or_create_customer(validated_data),
            created_by=self.resolve_created_by(config),
            subtotal=validated_data['subtotal'],
            tax_amount=validated_data['tax_amount'],
            discount_amount=validated_data['discount_amount'],
            total_amount=validated_data['total_amount'],
            payment_method=validated_data['payment_method'],
            payment_status=validated_data['payment_status'],
            status=Sale.STATUS_PENDING,
            source=Sale.SOURCE_ONLINE,
            notes=validated_data.get('notes', ''),
            transaction_image=validated_data.get('transaction_image'),
            customer_name=validated_data['customer_name'],
            customer_phone=validated_data['customer_phone'],
            customer_email=validated_data['customer_email'],
            delivery_address=validated_data['delivery_address'],
        )
        self.create_items(sale, items)

        create_system_notification(
            config,
            type=Notification.TYPE_NEW_ORDER,
            title='New Online Order',
            message=f"New online order #{get_display_id(sale.id, config.display_id_length)} received",
            related=sale.id,
            related_type='sale',
        )
        return sale


class SaleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Sale.STATUS_CHOICES)
