import logging
from io import BytesIO

from rest_framework import status, generics, filters
from rest_framework.decorators import api_view, permission_classes, parser_classes, authentication_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.parsers import JSONParser, FormParser, MultiPartParser
from rest_framework.exceptions import ValidationError, PermissionDenied
from django.http import Http404, HttpResponse
from django.shortcuts import get_object_or_404
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.permissions import IsAdmin, IsAdminOrManager
from core.config import get_pos_config
from core.id_converter import get_display_id, parse_numeric_id
from notifications.models import Notification
from notifications.services import create_system_notification
from .adapters import normalize_order_payload
from .models import Customer, Sale
from .reports import build_sales_workbook
from .serializers import (
    CustomerSerializer, CustomerLookupSerializer, PosSaleCreateSerializer, OnlineOrderCreateSerializer,
    SaleReadSerializer, SaleStatusSerializer,
)

logger = logging.getLogger(__name__)

SALE_RELATIONS = ('customer', 'created_by')


def get_sale_or_404(identifier, config):
    """Sale by UUID or numeric id; soft-deleted sales are not found"""
    try:
        return Sale.objects.select_related(*SALE_RELATIONS).prefetch_related(
            'items__product'
        ).get_by_identifier(identifier, config)
    except Sale.DoesNotExist:
        raise Http404('Order not found')


def notify_status_change(sale, config):
    display_id = get_display_id(sale.id, config.display_id_length)
    message = f"Order #{display_id} status updated to {sale.status}"

    if sale.created_by_id:
        create_system_notification(
            config,
            user=sale.created_by,
            type=Notification.TYPE_ORDER_STATUS,
            title='Order Status Update',
            message=message,
            related=sale.id,
            related_type='order',
        )
    create_system_notification(
        config,
        type=Notification.TYPE_ORDER_STATUS_ADMIN,
        title='Order Status Updated',
        message=message,
        related=sale.id,
        related_type='order',
    )


class OrderListCreateView(generics.ListCreateAPIView):
    """
    get: List orders, newest first
    post: Ring up a sale at the counter
    """
    permission_classes = [IsAuthenticated]

    def get_serializer_class(self):
        if self.request.method == 'POST':
            return PosSaleCreateSerializer
        return SaleReadSerializer

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['config'] = get_pos_config()
        return context

    def get_limit(self):
        return parse_numeric_id(self.request.query_params.get('limit') or None)

    def paginate_queryset(self, queryset):
        # ?limit= returns a plain list of at most that many orders
        if self.get_limit() is not None:
            return None
        return super().paginate_queryset(queryset)

    def get_queryset(self):
        queryset = Sale.objects.select_related(*SALE_RELATIONS).prefetch_related('items__product')

        # Filter by status
        status_filter = self.request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)

        # Filter by source
        source_filter = self.request.query_params.get('source')
        if source_filter:
            queryset = queryset.filter(source=source_filter)

        # Filter by date
        date_filter = self.request.query_params.get('date')
        if date_filter:
            queryset = queryset.filter(sale_date__date=date_filter)

        limit = self.get_limit()
        if limit is not None:
            queryset = queryset[:limit]

        return queryset

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('status', openapi.IN_QUERY, description="Filter by order status", type=openapi.TYPE_STRING),
            openapi.Parameter('source', openapi.IN_QUERY, description="Filter by source (pos/online)", type=openapi.TYPE_STRING),
            openapi.Parameter('date', openapi.IN_QUERY, description="Filter by date (YYYY-MM-DD)", type=openapi.TYPE_STRING),
            openapi.Parameter('limit', openapi.IN_QUERY, description="Maximum number of orders", type=openapi.TYPE_INTEGER),
        ]
    )
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(
        operation_description="Create a POS sale with items",
        request_body=PosSaleCreateSerializer,
        responses={201: SaleReadSerializer, 400: 'Bad Request'}
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        sale = serializer.save()

        # Return the created sale with full details
        response_serializer = SaleReadSerializer(sale, context=self.get_serializer_context())
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


@swagger_auto_schema(
    method='post',
    operation_description=(
        "Place an online order. Accepts JSON, or multipart with the order as a JSON "
        "string in 'orderData' and the payment receipt in 'transactionImage'."
    ),
    request_body=openapi.Schema(
        type=openapi.TYPE_OBJECT,
        required=['items'],
        properties={
            'items': openapi.Schema(
                type=openapi.TYPE_ARRAY,
                items=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    required=['productId', 'quantity'],
                    properties={
                        'productId': openapi.Schema(type=openapi.TYPE_STRING, format=openapi.FORMAT_UUID),
                        'quantity': openapi.Schema(type=openapi.TYPE_NUMBER),
                        'unitPrice': openapi.Schema(type=openapi.TYPE_NUMBER),
                    }
                )
            ),
            'customerInfo': openapi.Schema(type=openapi.TYPE_OBJECT),
            'paymentMethod': openapi.Schema(type=openapi.TYPE_STRING),
        }
    ),
    responses={201: openapi.Response(description="Order created"), 400: 'Bad Request'}
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
@parser_classes([JSONParser, FormParser, MultiPartParser])
def create_online_order(request):
    config = get_pos_config()
    payload = normalize_order_payload(request.data)
    image = request.FILES.get('transactionImage') or request.FILES.get('transaction_image')
    if image is not None:
        payload['transaction_image'] = image

    serializer = OnlineOrderCreateSerializer(data=payload, context={'request': request, 'config': config})
    serializer.is_valid(raise_exception=True)
    sale = serializer.save()
    logger.info("Online order %s created (numeric id %s)", sale.id, sale.related_id)

    return Response({
        'id': str(sale.id),
        'order_number': get_display_id(sale.id, config.display_id_length).upper(),
        'numeric_id': sale.related_id,
        'status': sale.status,
        'message': 'Order created successfully',
    }, status=status.HTTP_201_CREATED)


@swagger_auto_schema(
    method='get',
    operation_description="Get an order by UUID or by its numeric id",
    responses={200: SaleReadSerializer, 404: 'Order not found'}
)
@swagger_auto_schema(method='delete', operation_description="Soft delete an order", responses={204: 'Deleted'})
@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def order_detail(request, identifier):
    config = get_pos_config()
    sale = get_sale_or_404(identifier, config)

    if request.method == 'DELETE':
        if not IsAdminOrManager().has_permission(request, None):
            raise PermissionDenied(IsAdminOrManager.message)
        sale.soft_delete()
        logger.info("Order %s soft deleted by %s", sale.id, request.user.email)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = SaleReadSerializer(sale, context={'request': request, 'config': config})
    return Response(serializer.data)


@swagger_auto_schema(
    methods=['put', 'patch'],
    operation_description="Update order status",
    request_body=SaleStatusSerializer,
    responses={200: SaleReadSerializer, 400: 'Invalid status value', 404: 'Order not found'}
)
@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def update_order_status(request, identifier):
    config = get_pos_config()
    serializer = SaleStatusSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    with transaction.atomic():
        sale = get_sale_or_404(identifier, config)
        sale.status = serializer.validated_data['status']
        sale.save(update_fields=['status', 'updated_at'])
        notify_status_change(sale, config)

    return Response({
        'message': 'Order status updated successfully',
        'order': SaleReadSerializer(sale, context={'request': request, 'config': config}).data
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def accept_order(request, identifier):
    """Accept a pending online order"""
    config = get_pos_config()

    with transaction.atomic():
        sale = get_sale_or_404(identifier, config)
        if sale.source != Sale.SOURCE_ONLINE or sale.status != Sale.STATUS_PENDING:
            raise ValidationError({'status': 'Only pending online orders can be accepted'})
        sale.status = Sale.STATUS_ACCEPTED
        sale.save(update_fields=['status', 'updated_at'])
        notify_status_change(sale, config)

    return Response({
        'message': 'Order accepted',
        'order': SaleReadSerializer(sale, context={'request': request, 'config': config}).data
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def cancel_order(request, identifier):
    """Cancel an order and mark its payment refunded"""
    config = get_pos_config()

    with transaction.atomic():
        sale = get_sale_or_404(identifier, config)
        if sale.status == Sale.STATUS_CANCELLED:
            raise ValidationError({'status': 'Sale is already cancelled'})
        sale.status = Sale.STATUS_CANCELLED
        sale.payment_status = 'refunded'
        sale.save(update_fields=['status', 'payment_status', 'updated_at'])
        notify_status_change(sale, config)

    return Response({
        'message': 'Sale cancelled successfully',
        'order': SaleReadSerializer(sale, context={'request': request, 'config': config}).data
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdmin])
def restore_order(request, pk):
    """Bring back a soft-deleted order"""
    sale = get_object_or_404(Sale.all_objects.deleted(), pk=pk)
    sale.restore()
    logger.info("Order %s restored by %s", sale.id, request.user.email)
    return Response(SaleReadSerializer(sale, context={'request': request, 'config': get_pos_config()}).data)


@swagger_auto_schema(
    method='get',
    manual_parameters=[
        openapi.Parameter('start_date', openapi.IN_QUERY, description="YYYY-MM-DD", type=openapi.TYPE_STRING),
        openapi.Parameter('end_date', openapi.IN_QUERY, description="YYYY-MM-DD", type=openapi.TYPE_STRING),
    ],
    responses={200: 'Excel file'}
)
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrManager])
def export_sales(request):
    """Download sales between two dates as an Excel sheet"""
    queryset = Sale.objects.select_related('customer').order_by('sale_date')

    for param, lookup in (('start_date', 'sale_date__date__gte'), ('end_date', 'sale_date__date__lte')):
        value = request.query_params.get(param)
        if value:
            parsed = parse_date(value)
            if parsed is None:
                raise ValidationError({param: 'Must be a valid date (YYYY-MM-DD)'})
            queryset = queryset.filter(**{lookup: parsed})

    workbook = build_sales_workbook(queryset, get_pos_config())
    buffer = BytesIO()
    workbook.save(buffer)

    filename = f"sales_report_{timezone.now():%Y%m%d_%H%M%S}.xlsx"
    response = HttpResponse(
        buffer.getvalue(),
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
    )
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


# Customer Views
class CustomerListCreateView(generics.ListCreateAPIView):
    """
    get: List customers, searchable by name, phone or email
    post: Create a customer
    """
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'phone', 'email']
    ordering_fields = ['name', 'created_at']


class CustomerDetailView(generics.RetrieveUpdateAPIView):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated]


@swagger_auto_schema(
    method='post',
    operation_description="Find a customer by email or phone, creating one when none matches",
    request_body=CustomerLookupSerializer,
    responses={200: CustomerSerializer, 201: CustomerSerializer, 400: 'Email or phone is required'}
)
@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def find_or_create_customer(request):
    serializer = CustomerLookupSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    customer, created = Customer.objects.find_or_create(**serializer.validated_data)
    return Response(
        CustomerSerializer(customer).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK
    )
