from django.db import models
from authentication.models import CustomUser
import uuid


class Notification(models.Model):
    TYPE_SYSTEM = 'system'
    TYPE_NEW_ORDER = 'new_order'
    TYPE_ORDER_STATUS = 'order_status'
    TYPE_ORDER_STATUS_ADMIN = 'order_status_admin'
    TYPE_CHOICES = (
        (TYPE_SYSTEM, 'System'),
        (TYPE_NEW_ORDER, 'New Order'),
        (TYPE_ORDER_STATUS, 'Order Status'),
        (TYPE_ORDER_STATUS_ADMIN, 'Order Status (Admin)'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(CustomUser, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=30, choices=TYPE_CHOICES, default=TYPE_SYSTEM)
    title = models.CharField(max_length=255)
    message = models.TextField()

    # Numeric id of the related entity; UUID keys go through core.id_converter
    related_id = models.BigIntegerField(null=True, blank=True, db_index=True)
    related_type = models.CharField(max_length=50, null=True, blank=True)

    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} -> {self.user.email}"

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
