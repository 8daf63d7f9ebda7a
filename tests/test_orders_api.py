"""
Tests for the sale and online order endpoints.
"""

import json
import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from io import BytesIO
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from django.utils import timezone

import openpyxl
import pytest

from core.id_converter import uuid_to_numeric_id
from notifications.models import Notification
from orders.models import Customer, Sale


def online_payload(product, **extra):
    payload = {
        "items": [{"productId": str(product.id), "quantity": 2}],
        "customerInfo": {"name": "Ana", "email": "ana@example.com", "phone": "5550001"},
        "paymentMethod": "cashOnDelivery",
    }
    payload.update(extra)
    return payload


@pytest.mark.django_db
class TestOnlineOrders:
    def test_create_online_order(self, api_client, admin_user, product):
        response = api_client.post("/orders/online/", online_payload(product), format="json")

        assert response.status_code == 201
        sale = Sale.objects.get(pk=response.data["id"])
        assert sale.status == Sale.STATUS_PENDING
        assert sale.source == Sale.SOURCE_ONLINE
        assert sale.payment_method == "cash"
        assert sale.subtotal == Decimal("7.00")
        assert sale.total_amount == Decimal("7.00")
        assert sale.created_by is None
        assert sale.items.count() == 1

        assert response.data["numeric_id"] == uuid_to_numeric_id(sale.id)
        assert response.data["order_number"] == str(sale.id).replace("-", "")[:8].upper()
        assert response.data["status"] == "pending"

    def test_new_order_notification_points_at_sale(self, api_client, admin_user, product):
        response = api_client.post("/orders/online/", online_payload(product), format="json")
        sale = Sale.objects.get(pk=response.data["id"])

        notification = Notification.objects.get(user=admin_user, type=Notification.TYPE_NEW_ORDER)
        assert notification.related_type == "sale"
        assert notification.related_id == sale.related_id == uuid_to_numeric_id(sale.id)
        assert str(sale.id).replace("-", "")[:8] in notification.message

    def test_customer_is_reused_by_email(self, api_client, admin_user, product):
        existing = Customer.objects.create(name="Ana", email="ana@example.com")

        response = api_client.post("/orders/online/", online_payload(product), format="json")

        assert response.status_code == 201
        existing.refresh_from_db()
        assert Customer.objects.count() == 1
        assert existing.phone == "5550001"
        assert Sale.objects.get(pk=response.data["id"]).customer == existing

    def test_default_admin_owns_order_when_configured(self, api_client, admin_user, product, pos_config):
        pos_config(default_admin_id=admin_user.id)

        response = api_client.post("/orders/online/", online_payload(product), format="json")

        assert Sale.objects.get(pk=response.data["id"]).created_by == admin_user

    def test_mobile_payment_requires_receipt(self, api_client, admin_user, product):
        payload = online_payload(product, paymentMethod="mobileMoney")

        response = api_client.post("/orders/online/", payload, format="json")

        assert response.status_code == 400
        assert response.data["error"] is True
        assert "transaction_image" in response.data["details"]
        assert not Sale.objects.exists()

    def test_multipart_order_with_receipt(self, api_client, admin_user, product):
        receipt = SimpleUploadedFile("receipt.png", b"\x89PNG fake", content_type="image/png")
        data = {
            "orderData": json.dumps(online_payload(product, paymentMethod="mobileMoney")),
            "transactionImage": receipt,
        }

        response = api_client.post("/orders/online/", data, format="multipart")

        assert response.status_code == 201
        sale = Sale.objects.get(pk=response.data["id"])
        assert sale.payment_method == "mobile_payment"
        assert sale.transaction_image.name.startswith("transactions/")

    def test_invalid_order_data(self, api_client, admin_user):
        response = api_client.post("/orders/online/", {"orderData": "{broken"}, format="multipart")

        assert response.status_code == 400
        assert "orderData" in response.data["details"]

    def test_non_object_json_body(self, api_client, admin_user):
        response = api_client.post("/orders/online/", [1, 2], format="json")

        assert response.status_code == 400
        assert "orderData" in response.data["details"]
        assert not Sale.all_objects.exists()

    def test_inactive_product_rejected(self, api_client, admin_user, product):
        product.is_active = False
        product.save()

        response = api_client.post("/orders/online/", online_payload(product), format="json")

        assert response.status_code == 400
        assert "items" in response.data["details"]

    def test_empty_items_rejected(self, api_client, admin_user, product):
        response = api_client.post("/orders/online/", online_payload(product, items=[]), format="json")

        assert response.status_code == 400


@pytest.mark.django_db
class TestPosSales:
    def test_create_pos_sale(self, cashier_client, product):
        client, cashier = cashier_client
        payload = {
            "items": [{"product_id": str(product.id), "quantity": "2"}],
            "tax_amount": "0.50",
            "payment_method": "credit_card",
        }

        response = client.post("/orders/", payload, format="json")

        assert response.status_code == 201
        assert response.data["status"] == "completed"
        assert response.data["source"] == "pos"
        assert response.data["subtotal"] == "7.00"
        assert response.data["total_amount"] == "7.50"
        assert response.data["created_by_name"] == "Cashier"
        assert response.data["numeric_id"] == uuid_to_numeric_id(response.data["id"])
        assert response.data["display_id"] == response.data["id"].replace("-", "")[:8]

    def test_requires_authentication(self, api_client, product):
        response = api_client.post("/orders/", {"items": []}, format="json")
        assert response.status_code == 401

    def test_list_filters_and_hides_deleted(self, cashier_client, make_sale):
        client, _ = cashier_client
        online = make_sale(source=Sale.SOURCE_ONLINE, status=Sale.STATUS_PENDING)
        make_sale(source=Sale.SOURCE_POS)
        make_sale(source=Sale.SOURCE_ONLINE).soft_delete()

        response = client.get("/orders/", {"source": "online"})

        assert response.status_code == 200
        assert [row["id"] for row in response.data["results"]] == [str(online.id)]

    def test_limit_returns_plain_list(self, cashier_client, make_sale):
        client, _ = cashier_client
        for _ in range(3):
            make_sale()

        limited = client.get("/orders/", {"limit": "2"})
        paged = client.get("/orders/")

        assert limited.status_code == 200
        assert isinstance(limited.data, list)
        assert len(limited.data) == 2
        assert paged.data["count"] == 3


@pytest.mark.django_db
class TestOrderLookup:
    def test_get_by_uuid(self, cashier_client, make_sale):
        client, _ = cashier_client
        sale = make_sale()

        response = client.get(f"/orders/{sale.id}/")

        assert response.status_code == 200
        assert response.data["id"] == str(sale.id)

    def test_get_by_numeric_id(self, cashier_client, make_sale):
        client, _ = cashier_client
        sale = make_sale(pk=uuid.UUID("550e8400-e29b-41d4-a716-446655440000"))

        response = client.get("/orders/832553627/")

        assert response.status_code == 200
        assert response.data["id"] == str(sale.id)
        assert response.data["display_id"] == "550e8400"

    def test_non_ascii_digits_are_not_numeric_ids(self, cashier_client, make_sale):
        client, _ = cashier_client
        make_sale(pk=uuid.UUID("550e8400-e29b-41d4-a716-446655440000"))
        arabic_indic = "832553627".translate(str.maketrans("0123456789", "\u0660\u0661\u0662\u0663\u0664\u0665\u0666\u0667\u0668\u0669"))

        response = client.get(f"/orders/{arabic_indic}/")

        assert response.status_code == 404

    def test_unknown_numeric_id(self, cashier_client, make_sale):
        client, _ = cashier_client
        make_sale()

        response = client.get("/orders/123/")

        assert response.status_code == 404
        assert response.data["message"] == "Resource not found"

    def test_garbage_identifier(self, cashier_client):
        client, _ = cashier_client
        assert client.get("/orders/not-an-order/").status_code == 404

    def test_numeric_id_outside_scan_window(self, cashier_client, make_sale, pos_config):
        client, _ = cashier_client
        pos_config(reverse_lookup_limit=1)
        older = make_sale()
        make_sale()
        Sale.objects.filter(pk=older.pk).update(created_at=timezone.now() - timedelta(days=1))

        assert client.get(f"/orders/{older.related_id}/").status_code == 404
        assert client.get(f"/orders/{older.id}/").status_code == 200

    def test_store_failure_falls_back_to_raw_identifier(self, cashier_client, make_sale):
        client, _ = cashier_client
        sale = make_sale()

        with mock.patch("orders.models.find_uuid_by_numeric_id", side_effect=DatabaseError("down")):
            by_numeric = client.get(f"/orders/{sale.related_id}/")
            by_uuid = client.get(f"/orders/{sale.id}/")

        assert by_numeric.status_code == 404
        assert by_uuid.status_code == 200


@pytest.mark.django_db
class TestOrderStatus:
    def test_status_update_notifies_creator_and_admins(self, authenticated_client, cashier_user, make_sale):
        client, admin = authenticated_client
        sale = make_sale(created_by=cashier_user, status=Sale.STATUS_PENDING)

        response = client.patch(f"/orders/{sale.related_id}/status/", {"status": "accepted"}, format="json")

        assert response.status_code == 200
        sale.refresh_from_db()
        assert sale.status == Sale.STATUS_ACCEPTED

        creator_note = Notification.objects.get(user=cashier_user, type=Notification.TYPE_ORDER_STATUS)
        admin_note = Notification.objects.get(user=admin, type=Notification.TYPE_ORDER_STATUS_ADMIN)
        for note in (creator_note, admin_note):
            assert note.related_id == sale.related_id
            assert note.related_type == "order"

    def test_invalid_status(self, authenticated_client, make_sale):
        client, _ = authenticated_client
        sale = make_sale()

        response = client.patch(f"/orders/{sale.id}/status/", {"status": "eaten"}, format="json")

        assert response.status_code == 400

    def test_accept_pending_online_order(self, authenticated_client, make_sale):
        client, _ = authenticated_client
        sale = make_sale(source=Sale.SOURCE_ONLINE, status=Sale.STATUS_PENDING)

        response = client.post(f"/orders/{sale.id}/accept/")

        assert response.status_code == 200
        assert response.data["order"]["status"] == "accepted"

    def test_accept_rejects_pos_sale(self, authenticated_client, make_sale):
        client, _ = authenticated_client
        sale = make_sale()

        assert client.post(f"/orders/{sale.id}/accept/").status_code == 400

    def test_cancel(self, authenticated_client, make_sale):
        client, _ = authenticated_client
        sale = make_sale()

        response = client.post(f"/orders/{sale.id}/cancel/")
        assert response.status_code == 200
        sale.refresh_from_db()
        assert sale.status == Sale.STATUS_CANCELLED
        assert sale.payment_status == "refunded"

        assert client.post(f"/orders/{sale.id}/cancel/").status_code == 400


@pytest.mark.django_db
class TestSoftDelete:
    def test_delete_and_restore(self, authenticated_client, make_sale):
        client, _ = authenticated_client
        sale = make_sale()

        assert client.delete(f"/orders/{sale.id}/").status_code == 204
        assert client.get(f"/orders/{sale.id}/").status_code == 404
        assert Sale.all_objects.get(pk=sale.pk).deleted_at is not None

        response = client.post(f"/orders/{sale.id}/restore/")
        assert response.status_code == 200
        assert client.get(f"/orders/{sale.id}/").status_code == 200

    def test_restore_requires_deleted_sale(self, authenticated_client, make_sale):
        client, _ = authenticated_client
        sale = make_sale()

        assert client.post(f"/orders/{sale.id}/restore/").status_code == 404

    def test_cashier_cannot_delete(self, cashier_client, make_sale):
        client, _ = cashier_client
        sale = make_sale()

        assert client.delete(f"/orders/{sale.id}/").status_code == 403
        assert Sale.objects.filter(pk=sale.pk).exists()


@pytest.mark.django_db
class TestSalesExport:
    def test_export_workbook(self, api_client, manager_user, make_sale):
        api_client.force_authenticate(user=manager_user)
        sale = make_sale(total_amount=Decimal("12.50"))
        make_sale(total_amount=Decimal("4.00")).soft_delete()

        response = api_client.get("/orders/export/", {"start_date": "2000-01-01"})

        assert response.status_code == 200
        assert "attachment" in response["Content-Disposition"]
        sheet = openpyxl.load_workbook(BytesIO(response.content)).active
        assert sheet.cell(row=1, column=1).value == "Order"
        assert sheet.cell(row=2, column=1).value == str(sale.id).replace("-", "")[:8].upper()
        assert sheet.cell(row=2, column=2).value == sale.related_id
        assert sheet.cell(row=3, column=12).value == 12.5

    def test_export_total_and_local_time(self, api_client, manager_user, make_sale, settings):
        settings.TIME_ZONE = "Africa/Kampala"
        api_client.force_authenticate(user=manager_user)
        make_sale(total_amount=Decimal("0.10"), sale_date=datetime(2024, 1, 15, 21, 30, tzinfo=dt_timezone.utc))
        make_sale(total_amount=Decimal("0.20"), sale_date=datetime(2024, 1, 15, 22, 0, tzinfo=dt_timezone.utc))

        response = api_client.get("/orders/export/", {"start_date": "2000-01-01"})

        sheet = openpyxl.load_workbook(BytesIO(response.content)).active
        assert sheet.cell(row=2, column=3).value == "2024-01-16 00:30"
        assert sheet.cell(row=4, column=12).value == 0.3

    def test_invalid_date(self, api_client, manager_user):
        api_client.force_authenticate(user=manager_user)

        response = api_client.get("/orders/export/", {"start_date": "yesterday"})

        assert response.status_code == 400

    def test_cashier_forbidden(self, cashier_client):
        client, _ = cashier_client
        assert client.get("/orders/export/").status_code == 403
