from django.db import models, transaction

from authentication.models import TimeStampedModel


class StoreSettingManager(models.Manager):

    def get_solo(self):
        """The single settings row, created with defaults on first access"""
        with transaction.atomic():
            setting = self.order_by('id').first()
            if setting is None:
                setting = self.create()
        return setting


class StoreSetting(TimeStampedModel):
    """Shop-wide settings; the table holds a single row"""
    store_name = models.CharField(max_length=255, default='My Store')
    currency_code = models.CharField(max_length=10, default='UGX')
    currency_symbol = models.CharField(max_length=10, default='UGX')
    email = models.EmailField(null=True, blank=True)
    phone = models.CharField(max_length=50, null=True, blank=True)
    address = models.CharField(max_length=255, null=True, blank=True)
    city = models.CharField(max_length=100, null=True, blank=True)
    country = models.CharField(max_length=100, null=True, blank=True)
    website = models.CharField(max_length=255, null=True, blank=True)
    tax_rate = models.DecimalField(max_digits=5, decimal_places=2, default=0)
    language = models.CharField(max_length=10, default='en')

    # Online ordering window; days are 0 (Sunday) to 6
    online_orders_enabled = models.BooleanField(default=True)
    online_orders_start_time = models.TimeField(null=True, blank=True)
    online_orders_end_time = models.TimeField(null=True, blank=True)
    online_orders_days = models.JSONField(default=list, blank=True)

    # Receipts
    receipt_prefix = models.CharField(max_length=20, default='INV', blank=True)
    receipt_footer_text = models.TextField(default='Thank you for shopping with us!', blank=True)

    # Payments
    accept_cash = models.BooleanField(default=True)
    accept_credit_cards = models.BooleanField(default=True)
    accept_debit_cards = models.BooleanField(default=True)
    accept_mobile_payments = models.BooleanField(default=False)
    default_payment_method = models.CharField(max_length=20, default='cash')
    mobile_money_number = models.CharField(max_length=50, null=True, blank=True)

    objects = StoreSettingManager()

    def __str__(self):
        return self.store_name

    class Meta:
        db_table = 'settings'
