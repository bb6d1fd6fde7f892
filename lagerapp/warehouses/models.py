import re

from django.db import models


class Warehouse(models.Model):
    """Storage locations: main warehouse, vehicles and job sites"""
    TYPE_CHOICES = [
        ('Main', 'Hauptlager'),
        ('Vehicle', 'Fahrzeug'),
        ('Site', 'Baustelle'),
    ]

    name = models.CharField(max_length=200)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='Main')
    location = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def is_vehicle(self):
        return self.type == 'Vehicle'

    def safe_name(self):
        """Name reduced to letters and digits, used as commission number prefix"""
        return re.sub(r'[^a-zA-Z0-9]', '', self.name or '') or 'Lager'

    class Meta:
        db_table = 'warehouses'
        ordering = ['name']
