from django.contrib import admin
from .models import Machine, MachineEvent, MachineReservation


@admin.register(Machine)
class MachineAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'assigned_to', 'external_borrower', 'next_maintenance']
    list_filter = ['status']
    search_fields = ['name', 'external_borrower']
    ordering = ['name']


@admin.register(MachineReservation)
class MachineReservationAdmin(admin.ModelAdmin):
    list_display = ['machine', 'user', 'start_date', 'end_date']
    list_filter = ['start_date']
    ordering = ['start_date']


@admin.register(MachineEvent)
class MachineEventAdmin(admin.ModelAdmin):
    list_display = ['machine', 'action', 'details', 'user', 'created_at']
    list_filter = ['action', 'created_at']
    search_fields = ['details', 'machine__name']
    ordering = ['-created_at']
