from django.urls import path
from . import views

app_name = 'notifications'

urlpatterns = [
    path('', views.NotificationListView.as_view(), name='notification-list'),
    path('admin/', views.AdminNotificationListView.as_view(), name='notification-admin-list'),
    path('online-orders/', views.OnlineOrderNotificationListView.as_view(), name='notification-online-orders'),
    path('unread-count/', views.unread_count, name='notification-unread-count'),
    path('unread-online-orders-count/', views.unread_online_order_count, name='notification-unread-online-count'),
    path('mark-all-read/', views.mark_all_as_read, name='notification-mark-all-read'),
    path('clear/', views.delete_all_notifications, name='notification-delete-all'),
    path('<uuid:pk>/read/', views.mark_as_read, name='notification-mark-read'),
    path('<uuid:pk>/related/', views.related_entity, name='notification-related'),
    path('<uuid:pk>/', views.delete_notification, name='notification-delete'),
]
