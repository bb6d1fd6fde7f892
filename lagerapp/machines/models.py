from django.conf import settings
from django.db import models
from lagerapp.core.models import EventLog


class Machine(models.Model):
    """Power tool or device that workers borrow"""
    STATUS_CHOICES = [
        ('Available', 'Verfügbar'),
        ('Rented', 'Verliehen'),
        ('In Repair', 'In Reparatur'),
    ]

    name = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='Available')
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='machines'
    )
    external_borrower = models.CharField(max_length=255, blank=True)
    next_maintenance = models.DateField(null=True, blank=True)
    image_url = models.URLField(max_length=1000, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def borrower_name(self):
        if self.assigned_to_id and self.assigned_to:
            return self.assigned_to.display_name
        return self.external_borrower or None

    class Meta:
        db_table = 'machines'
        ordering = ['name']


class MachineReservation(models.Model):
    """Booking of a machine for an inclusive date range"""
    machine = models.ForeignKey(Machine, on_delete=models.CASCADE, related_name='reservations')
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='machine_reservations'
    )
    start_date = models.DateField()
    end_date = models.DateField()
    note = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.machine} {self.start_date} - {self.end_date}"

    class Meta:
        db_table = 'machine_reservations'
        ordering = ['start_date']


class MachineEvent(EventLog):
    machine = models.ForeignKey(Machine, on_delete=models.CASCADE, related_name='events')

    def __str__(self):
        return f"{self.machine}: {self.action}"

    class Meta(EventLog.Meta):
        db_table = 'machine_events'
