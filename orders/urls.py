from django.urls import path
from . import views

app_name = 'orders'

urlpatterns = [
    path('', views.OrderListCreateView.as_view(), name='order-list-create'),
    path('online/', views.create_online_order, name='order-online-create'),
    path('export/', views.export_sales, name='order-export'),
    path('<uuid:pk>/restore/', views.restore_order, name='order-restore'),

    # <identifier> is either the order UUID or its numeric id
    path('<str:identifier>/', views.order_detail, name='order-detail'),
    path('<str:identifier>/status/', views.update_order_status, name='order-status'),
    path('<str:identifier>/accept/', views.accept_order, name='order-accept'),
    path('<str:identifier>/cancel/', views.cancel_order, name='order-cancel'),
]
