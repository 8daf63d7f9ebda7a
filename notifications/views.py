import logging

from rest_framework import generics, status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from django.db import DatabaseError
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from authentication.permissions import IsAdmin, IsAdminOrCashier
from core.config import get_pos_config
from core.id_converter import find_uuid_by_numeric_id, parse_numeric_id
from orders.models import Sale
from .models import Notification
from .serializers import NotificationSerializer, AdminNotificationSerializer

logger = logging.getLogger(__name__)

RELATED_SALE_TYPES = ('sale', 'order')


class NotificationPagination(LimitOffsetPagination):
    default_limit = 50
    max_limit = 200


FILTER_PARAMETERS = [
    openapi.Parameter('is_read', openapi.IN_QUERY, description="Filter by read state", type=openapi.TYPE_BOOLEAN),
    openapi.Parameter('type', openapi.IN_QUERY, description="Filter by notification type", type=openapi.TYPE_STRING),
    openapi.Parameter('related_id', openapi.IN_QUERY, description="Filter by numeric related id", type=openapi.TYPE_INTEGER),
    openapi.Parameter('related_type', openapi.IN_QUERY, description="Filter by related entity type", type=openapi.TYPE_STRING),
]


class NotificationFilterMixin:
    """Query parameter filters shared by the notification lists"""

    def filter_notifications(self, queryset):
        params = self.request.query_params

        is_read = params.get('is_read')
        if is_read is not None:
            queryset = queryset.filter(is_read=is_read.lower() == 'true')

        notification_type = params.get('type')
        if notification_type:
            queryset = queryset.filter(type=notification_type)

        related_id = params.get('related_id')
        if related_id:
            parsed = parse_numeric_id(related_id)
            if parsed is None:
                raise ValidationError({'related_id': 'Must be a non-negative integer'})
            queryset = queryset.filter(related_id=parsed)

        related_type = params.get('related_type')
        if related_type:
            queryset = queryset.filter(related_type=related_type)

        return queryset


class NotificationListView(NotificationFilterMixin, generics.ListAPIView):
    """Notifications of the current user"""
    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = NotificationPagination

    def get_queryset(self):
        return self.filter_notifications(Notification.objects.filter(user=self.request.user))

    @swagger_auto_schema(manual_parameters=FILTER_PARAMETERS)
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class AdminNotificationListView(NotificationFilterMixin, generics.ListAPIView):
    """All notifications, for the admin dashboard"""
    serializer_class = AdminNotificationSerializer
    permission_classes = [IsAuthenticated, IsAdmin]
    pagination_class = NotificationPagination

    def get_queryset(self):
        return self.filter_notifications(Notification.objects.select_related('user'))

    @swagger_auto_schema(manual_parameters=FILTER_PARAMETERS)
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)


class OnlineOrderNotificationListView(NotificationFilterMixin, generics.ListAPIView):
    """New online order notifications for the order desk"""
    serializer_class = AdminNotificationSerializer
    permission_classes = [IsAuthenticated, IsAdminOrCashier]
    pagination_class = NotificationPagination

    def get_queryset(self):
        queryset = Notification.objects.filter(
            type=Notification.TYPE_NEW_ORDER, related_type='sale'
        ).select_related('user')
        return self.filter_notifications(queryset)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    count = Notification.objects.filter(user=request.user, is_read=False).count()
    return Response({'count': count})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrCashier])
def unread_online_order_count(request):
    count = Notification.objects.filter(
        type=Notification.TYPE_NEW_ORDER,
        related_type='sale',
        is_read=False
    ).count()
    return Response({'count': count})


@swagger_auto_schema(
    methods=['put', 'patch'],
    operation_description="Mark a notification as read",
    responses={200: NotificationSerializer, 404: 'Notification not found'}
)
@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def mark_as_read(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    notification.is_read = True
    notification.save(update_fields=['is_read'])
    return Response({
        'message': 'Notification marked as read',
        'notification': NotificationSerializer(notification).data
    })


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def mark_all_as_read(request):
    updated = Notification.objects.filter(user=request.user, is_read=False).update(is_read=True)
    return Response({'message': 'All notifications marked as read', 'updated': updated})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_notification(request, pk):
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    notification.delete()
    return Response({'message': 'Notification deleted successfully'})


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def delete_all_notifications(request):
    deleted, _ = Notification.objects.filter(user=request.user).delete()
    return Response({'message': 'All notifications deleted successfully', 'deleted': deleted})


@swagger_auto_schema(
    method='get',
    operation_description="Resolve the numeric related id of a notification back to the sale UUID",
    responses={200: openapi.Response(description="Resolution result"), 404: 'Notification not found'}
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def related_entity(request, pk):
    """Best-effort reverse lookup of the sale a notification points at"""
    notification = get_object_or_404(Notification, pk=pk, user=request.user)
    config = get_pos_config()

    sale_id = None
    if notification.related_id is not None and notification.related_type in RELATED_SALE_TYPES:
        try:
            sale_id = find_uuid_by_numeric_id(
                notification.related_id,
                Sale.objects.all(),
                max_digits=config.numeric_id_digits,
                fetch_limit=config.reverse_lookup_limit,
            )
        except DatabaseError:
            logger.exception("Reverse lookup failed for notification %s", notification.pk)

    return Response({
        'related_id': notification.related_id,
        'related_type': notification.related_type,
        'related_uuid': str(sale_id) if sale_id else None,
        'resolved': sale_id is not None,
    }, status=status.HTTP_200_OK)
