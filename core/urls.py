from django.urls import path
from . import views

urlpatterns = [
    path('', views.store_settings, name='store-settings'),
    path('public/', views.public_store_settings, name='store-settings-public'),
]
