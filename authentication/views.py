import logging

from rest_framework import generics, status, permissions
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenObtainPairView
from django.db import connection, DatabaseError
from django.utils import timezone
from drf_spectacular.utils import extend_schema, OpenApiExample
from rest_framework.exceptions import ValidationError

from .models import CustomUser, LoginHistory
from .serializers import UserSerializer, ProfileSerializer, LoginSerializer, LoginHistorySerializer
from .permissions import IsAdmin
from core.config import get_pos_config

logger = logging.getLogger(__name__)


def _client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


# =============== AUTHENTICATION VIEWS ===============

class CustomTokenObtainPairView(TokenObtainPairView):
    """
    JWT authentication endpoint.

    Every attempt, successful or not, is written to the login history.
    """
    serializer_class = LoginSerializer

    @extend_schema(
        summary="User Login with JWT Token",
        description="Authenticate with email and password. Returns JWT tokens and the user profile.",
        request=LoginSerializer,
        responses={
            200: {
                'type': 'object',
                'properties': {
                    'refresh': {'type': 'string', 'description': 'JWT refresh token'},
                    'access': {'type': 'string', 'description': 'JWT access token'},
                    'user': {'type': 'object', 'description': 'User information'},
                }
            },
            400: {'description': 'Invalid credentials or validation errors'},
        },
        examples=[
            OpenApiExample(
                'Cashier Login',
                value={
                    "email": "cashier@cafe.com",
                    "password": "SecurePassword123!"
                }
            )
        ]
    )
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        history = LoginHistory(
            email=str(request.data.get('email', ''))[:254],
            ip_address=_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', '')[:500],
        )

        if not serializer.is_valid():
            history.save()
            logger.warning("Failed login for %s from %s", history.email, history.ip_address)
            raise ValidationError(serializer.errors)

        user = serializer.validated_data['user']
        history.user = user
        history.successful = True
        history.save()

        # Update last login
        user.last_login_at = timezone.now()
        user.save(update_fields=['last_login_at'])

        # Generate tokens
        refresh = RefreshToken.for_user(user)
        refresh['role'] = user.role

        return Response({
            'refresh': str(refresh),
            'access': str(refresh.access_token),
            'user': UserSerializer(user).data,
        }, status=status.HTTP_200_OK)


# =============== USER MANAGEMENT ===============

class UserListCreateView(generics.ListCreateAPIView):
    """
    List and create POS users. Admin only.
    """
    serializer_class = UserSerializer
    permission_classes = [IsAdmin]

    def get_queryset(self):
        queryset = CustomUser.objects.all()
        role = self.request.query_params.get('role')
        if role:
            queryset = queryset.filter(role=role)
        return queryset

    @extend_schema(summary="Create POS User", request=UserSerializer, responses={201: UserSerializer})
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class UserDetailView(generics.RetrieveUpdateDestroyAPIView):
    """
    Retrieve, update or deactivate a user. Admin only.
    """
    serializer_class = UserSerializer
    permission_classes = [IsAdmin]
    queryset = CustomUser.objects.all()
    lookup_url_kwarg = 'user_id'

    def perform_destroy(self, instance):
        # Users referenced by sales are never hard deleted
        instance.is_active = False
        instance.save(update_fields=['is_active'])
        logger.info("User %s deactivated by %s", instance.email, self.request.user.email)


class MyProfileView(generics.RetrieveUpdateAPIView):
    """
    Get and update current user's profile information.
    """
    serializer_class = ProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_object(self):
        return self.request.user


class MyLoginHistoryView(generics.ListAPIView):
    """Recent login attempts of the current user"""
    serializer_class = LoginHistorySerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return LoginHistory.objects.filter(user=self.request.user)


@extend_schema(summary="Health Check", responses={200: {'type': 'object'}, 503: {'type': 'object'}})
@api_view(['GET'])
@permission_classes([permissions.AllowAny])
def health_check(request):
    """Liveness probe for the POS backend; reports database reachability and the id width in use."""
    checked_at = timezone.now().isoformat()
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.error("Health check could not reach the database: %s", e)
        return Response(
            {'status': 'unhealthy', 'checked_at': checked_at, 'database': 'unreachable'},
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    return Response({
        'status': 'healthy',
        'checked_at': checked_at,
        'database': 'reachable',
        'numeric_id_digits': get_pos_config().numeric_id_digits,
    })
