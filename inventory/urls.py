from django.urls import path
from . import views


urlpatterns = [
    # Category URLs
    path('categories/', views.CategoryListCreateView.as_view(), name='category-list-create'),
    path('categories/<uuid:pk>/', views.CategoryRetrieveUpdateDestroyView.as_view(), name='category-detail'),

    # Product URLs
    path('', views.ProductListCreateView.as_view(), name='product-list-create'),
    path('online/', views.OnlineProductListView.as_view(), name='product-online-list'),
    path('low-stock/', views.low_stock_products, name='product-low-stock'),
    path('<uuid:pk>/', views.ProductRetrieveUpdateDestroyView.as_view(), name='product-detail'),
]
