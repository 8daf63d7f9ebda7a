import logging

from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.exceptions import PermissionDenied
from drf_spectacular.utils import extend_schema

from authentication.permissions import IsAdmin
from .models import StoreSetting
from .serializers import StoreSettingSerializer, PublicStoreSettingSerializer

logger = logging.getLogger(__name__)


@extend_schema(summary="Store Settings", request=StoreSettingSerializer, responses={200: StoreSettingSerializer})
@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def store_settings(request):
    """
    get: Shop settings, created with defaults on first access
    put/patch: Update the settings (admin only)
    """
    setting = StoreSetting.objects.get_solo()

    if request.method == 'GET':
        return Response(StoreSettingSerializer(setting).data)

    if not IsAdmin().has_permission(request, None):
        raise PermissionDenied(IsAdmin.message)

    serializer = StoreSettingSerializer(setting, data=request.data, partial=True)
    serializer.is_valid(raise_exception=True)
    serializer.save()
    logger.info("Store settings updated by %s: %s", request.user.email, sorted(serializer.validated_data))
    return Response(serializer.data)


@extend_schema(summary="Public Store Settings", responses={200: PublicStoreSettingSerializer})
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def public_store_settings(request):
    return Response(PublicStoreSettingSerializer(StoreSetting.objects.get_solo()).data)
