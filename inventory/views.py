from rest_framework import generics
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters
from django.db.models import F

from authentication.permissions import IsAdminOrManager, IsAdminOrManagerOrReadOnly
from .models import Category, Product
from .serializers import CategorySerializer, ProductSerializer, OnlineProductSerializer


# Category Views
class CategoryListCreateView(generics.ListCreateAPIView):
    """
    get: List all categories
    post: Create a new category (admins and managers only)
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    permission_classes = [IsAdminOrManagerOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name']
    ordering_fields = ['name', 'display_order', 'created_at']


class CategoryRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """
    get: Get category details (authenticated users)
    put/patch/delete: admins and managers only
    """
    queryset = Category.objects.all()
    serializer_class = CategorySerializer
    permission_classes = [IsAdminOrManagerOrReadOnly]


# Product Views
class ProductListCreateView(generics.ListCreateAPIView):
    """
    get: List all products
    post: Create a new product (admins and managers only)
    """
    queryset = Product.objects.select_related('category')
    serializer_class = ProductSerializer
    permission_classes = [IsAdminOrManagerOrReadOnly]
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active', 'is_online', 'category']
    search_fields = ['name', 'description', 'sku', 'barcode']
    ordering_fields = ['name', 'price', 'stock_quantity', 'created_at']
    ordering = ['name']


class ProductRetrieveUpdateDestroyView(generics.RetrieveUpdateDestroyAPIView):
    """
    get: Get product details (authenticated users)
    put/patch: Update product (admins and managers only)
    delete: Deactivate product (admins and managers only)
    """
    queryset = Product.objects.select_related('category')
    serializer_class = ProductSerializer
    permission_classes = [IsAdminOrManagerOrReadOnly]

    def perform_destroy(self, instance):
        # Products referenced by sale items stay in the table
        instance.is_active = False
        instance.save(update_fields=['is_active', 'updated_at'])


class OnlineProductListView(generics.ListAPIView):
    """Active products shown on the public online order page"""
    serializer_class = OnlineProductSerializer
    permission_classes = [AllowAny]
    authentication_classes = []
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['category']
    search_fields = ['name', 'description']

    def get_queryset(self):
        return Product.objects.filter(is_active=True, is_online=True).select_related('category')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminOrManager])
def low_stock_products(request):
    """Active products at or below their reorder level"""
    products = Product.objects.filter(
        is_active=True,
        stock_quantity__lte=F('reorder_level')
    ).select_related('category').order_by('stock_quantity')

    serializer = ProductSerializer(products, many=True)
    return Response({
        'count': len(serializer.data),
        'products': serializer.data
    })
