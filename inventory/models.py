from django.db import models
from authentication.models import TimeStampedModel
from decimal import Decimal
import uuid


class Category(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    display_order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    def __str__(self):
        return str(self.name)

    class Meta:
        db_table = 'categories'
        verbose_name_plural = "Categories"
        ordering = ['display_order', 'name']


class Product(TimeStampedModel):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    category = models.ForeignKey(
        Category, on_delete=models.SET_NULL, null=True, blank=True, related_name="products"
    )
    name = models.CharField(max_length=255)
    description = models.CharField(max_length=1000, blank=True)
    image = models.FileField(upload_to='product_images', null=True, blank=True)

    price = models.DecimalField(max_digits=10, decimal_places=2)
    cost_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    # Code of product for searching
    sku = models.CharField(max_length=50, null=True, blank=True, unique=True)
    barcode = models.CharField(max_length=100, null=True, blank=True)

    stock_quantity = models.IntegerField(default=0)
    reorder_level = models.IntegerField(default=0)

    is_active = models.BooleanField(default=True)
    # Visible on the public online-order page
    is_online = models.BooleanField(default=False)

    @property
    def is_low_stock(self):
        return self.stock_quantity <= self.reorder_level

    @property
    def margin(self):
        if self.cost_price is None:
            return None
        return self.price - self.cost_price

    def save(self, *args, **kwargs):
        # Round prices to 2 decimal places
        self.price = round(Decimal(str(self.price)), 2)
        if self.cost_price is not None:
            self.cost_price = round(Decimal(str(self.cost_price)), 2)
        super().save(*args, **kwargs)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'products'
        ordering = ['name']
