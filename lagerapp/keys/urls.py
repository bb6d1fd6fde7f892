from django.urls import path
from .views import (
    key_list_create, key_detail, key_checkout, key_checkin, key_protocol, key_history,
    key_category_list_create, key_category_detail,
)

urlpatterns = [
    path('keys/', key_list_create, name='key-list-create'),
    path('keys/checkout/', key_checkout, name='key-checkout'),
    path('keys/checkin/', key_checkin, name='key-checkin'),
    path('keys/protocol/', key_protocol, name='key-protocol'),
    path('keys/events/', key_history, name='key-event-list'),
    path('keys/categories/', key_category_list_create, name='key-category-list-create'),
    path('keys/categories/<int:pk>/', key_category_detail, name='key-category-detail'),
    path('keys/<int:pk>/', key_detail, name='key-detail'),
    path('keys/<int:pk>/history/', key_history, name='key-history'),
]
