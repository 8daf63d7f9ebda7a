from django.db import models, DatabaseError
from django.db.models import Q
from django.utils import timezone
from inventory.models import Product
from authentication.models import CustomUser, TimeStampedModel
from core.config import get_pos_config
from core.id_converter import find_uuid_by_numeric_id, is_numeric_id, uuid_to_numeric_id
from decimal import Decimal
import logging
import uuid

logger = logging.getLogger(__name__)


class CustomerManager(models.Manager):

    def find_or_create(self, name='', email='', phone='', address=''):
        """
        Customer matching ``email`` or ``phone``, created when none matches.

        Blank fields of a matched customer are filled from the arguments.
        Returns a ``(customer, created)`` tuple.
        """
        lookup = Q()
        if email:
            lookup |= Q(email=email)
        if phone:
            lookup |= Q(phone=phone)

        customer = self.filter(lookup).order_by('id').first() if lookup else None
        if customer is None:
            customer = self.create(
                name=name or 'Walk-in Customer',
                phone=phone or None,
                email=email or None,
                address=address or None,
            )
            return customer, True

        updates = {}
        for field, value in (('name', name), ('email', email), ('phone', phone), ('address', address)):
            if value and not getattr(customer, field):
                updates[field] = value
        if updates:
            for field, value in updates.items():
                setattr(customer, field, value)
            customer.save(update_fields=list(updates) + ['updated_at'])
        return customer, False


class Customer(TimeStampedModel):
    name = models.CharField(max_length=255, default='Walk-in Customer')
    phone = models.CharField(max_length=20, null=True, blank=True, db_index=True)
    email = models.EmailField(null=True, blank=True, db_index=True)
    address = models.TextField(null=True, blank=True)

    objects = CustomerManager()

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'customers'
        ordering = ['name']


class SaleQuerySet(models.QuerySet):

    def visible(self):
        return self.filter(deleted_at__isnull=True)

    def deleted(self):
        return self.filter(deleted_at__isnull=False)

    def resolve_identifier(self, identifier, config):
        """
        Map a path identifier to a sale primary key.

        All-digit identifiers are treated as numeric ids and looked up with the
        bounded reverse scan over this queryset. When the scan misses or the
        store fails, the identifier is returned unchanged so the caller can
        still try it.
        """
        identifier = str(identifier).strip()
        if not is_numeric_id(identifier):
            return identifier

        logger.info("Received numeric order id %s, looking up UUID", identifier)
        try:
            found = find_uuid_by_numeric_id(
                identifier,
                self.prefetch_related(None),
                max_digits=config.numeric_id_digits,
                fetch_limit=config.reverse_lookup_limit,
            )
        except DatabaseError:
            logger.exception("Reverse lookup failed for numeric order id %s", identifier)
            return identifier

        if found is None:
            logger.info("No UUID found for numeric order id %s", identifier)
            return identifier
        return found

    def get_by_identifier(self, identifier, config):
        """Fetch a sale by UUID or numeric id, raising DoesNotExist when neither matches"""
        resolved = self.resolve_identifier(identifier, config)
        try:
            pk = resolved if isinstance(resolved, uuid.UUID) else uuid.UUID(str(resolved))
        except ValueError:
            raise self.model.DoesNotExist(f"No sale matches identifier {identifier!r}")
        return self.get(pk=pk)


class SaleManager(models.Manager.from_queryset(SaleQuerySet)):
    """Default manager: soft-deleted sales are never returned"""

    def get_queryset(self):
        return super().get_queryset().visible()


class Sale(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # Numeric copy of the id for legacy reports; recomputed on every save
    related_id = models.BigIntegerField(null=True, blank=True, editable=False)
    receipt_number = models.CharField(max_length=50, null=True, blank=True, unique=True)
    sale_date = models.DateTimeField(default=timezone.now)

    customer = models.ForeignKey(
        Customer, on_delete=models.SET_NULL, null=True, blank=True, related_name='sales'
    )
    created_by = models.ForeignKey(
        CustomUser, on_delete=models.PROTECT, null=True, blank=True, related_name='sales'
    )

    # Pricing fields
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    tax_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))

    PAYMENT_METHOD_CHOICES = (
        ("cash", "Cash"),
        ("credit_card", "Credit Card"),
        ("debit_card", "Debit Card"),
        ("mobile_payment", "Mobile Payment"),
        ("other", "Other"),
        ("online", "Online"),
    )
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, default="cash")

    PAYMENT_STATUS_CHOICES = (
        ("pending", "Pending"),
        ("paid", "Paid"),
        ("partially_paid", "Partially Paid"),
        ("refunded", "Refunded"),
    )
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default="paid")

    STATUS_PENDING = "pending"
    STATUS_ACCEPTED = "accepted"
    STATUS_REJECTED = "rejected"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"
    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_ACCEPTED, "Accepted"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_COMPLETED)

    SOURCE_POS = "pos"
    SOURCE_ONLINE = "online"
    SOURCE_CHOICES = ((SOURCE_POS, "POS"), (SOURCE_ONLINE, "Online"))
    source = models.CharField(max_length=10, choices=SOURCE_CHOICES, default=SOURCE_POS)

    notes = models.TextField(blank=True, default='')
    transaction_image = models.FileField(upload_to='transactions', null=True, blank=True)

    # Customer details as entered on the order
    customer_name = models.CharField(max_length=255, blank=True, default='')
    customer_phone = models.CharField(max_length=20, blank=True, default='')
    customer_email = models.CharField(max_length=255, blank=True, default='')
    delivery_address = models.TextField(blank=True, default='')

    # Tombstone for soft delete
    deleted_at = models.DateTimeField(null=True, blank=True)

    objects = SaleManager()
    all_objects = SaleQuerySet.as_manager()

    def save(self, *args, **kwargs):
        self.related_id = uuid_to_numeric_id(self.id, get_pos_config().numeric_id_digits)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'related_id' not in update_fields:
            kwargs['update_fields'] = list(update_fields) + ['related_id']
        super().save(*args, **kwargs)

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def soft_delete(self):
        self.deleted_at = timezone.now()
        self.save(update_fields=['deleted_at', 'updated_at'])

    def restore(self):
        self.deleted_at = None
        self.save(update_fields=['deleted_at', 'updated_at'])

    def calculate_totals(self):
        """Recalculate subtotal and total from the sale items"""
        self.subtotal = sum((item.subtotal for item in self.items.all()), Decimal('0.00'))
        self.total_amount = self.subtotal + self.tax_amount - self.discount_amount

    def __str__(self):
        return f"Sale {self.id} - {self.status} - {self.total_amount}"

    class Meta:
        db_table = 'sales'
        # Newest first; this is also the scan order of the numeric id lookup
        ordering = ['-created_at', 'id']


class SaleItem(models.Model):
    sale = models.ForeignKey(Sale, related_name='items', on_delete=models.CASCADE)
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='sale_items')
    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1'))
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    discount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    notes = models.CharField(max_length=500, blank=True, default='')

    def save(self, *args, **kwargs):
        # Round price to 2 decimal places
        self.unit_price = round(Decimal(str(self.unit_price)), 2)
        self.subtotal = round(Decimal(str(self.quantity)) * self.unit_price, 2)
        if not self.total_price:
            self.total_price = self.subtotal - Decimal(str(self.discount))
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.quantity} x {self.product.name}"

    class Meta:
        db_table = 'sale_items'
        ordering = ['id']
