from django.urls import path
from .views import (
    machine_list_create, machine_detail, machine_image_upload, machine_borrow, machine_return,
    machine_repair_finished, machine_reservations, machine_reservation_delete, machine_history,
)

urlpatterns = [
    path('machines/', machine_list_create, name='machine-list-create'),
    path('machines/reservations/<int:pk>/', machine_reservation_delete, name='machine-reservation-delete'),
    path('machines/<int:pk>/', machine_detail, name='machine-detail'),
    path('machines/<int:pk>/image/', machine_image_upload, name='machine-image-upload'),
    path('machines/<int:pk>/borrow/', machine_borrow, name='machine-borrow'),
    path('machines/<int:pk>/return/', machine_return, name='machine-return'),
    path('machines/<int:pk>/repair-finished/', machine_repair_finished, name='machine-repair-finished'),
    path('machines/<int:pk>/reservations/', machine_reservations, name='machine-reservations'),
    path('machines/<int:pk>/history/', machine_history, name='machine-history'),
]
