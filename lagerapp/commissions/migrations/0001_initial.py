# Generated manually
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('inventory', '0001_initial'),
        ('suppliers', '0001_initial'),
        ('warehouses', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Commission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('order_number', models.CharField(blank=True, max_length=100)),
                ('name', models.CharField(max_length=255)),
                ('notes', models.TextField(blank=True)),
                ('status', models.CharField(choices=[('Draft', 'Entwurf'), ('Preparing', 'In Vorbereitung'), ('Ready', 'Bereit'), ('Withdrawn', 'Entnommen'), ('ReturnPending', 'Retoure angemeldet'), ('ReturnReady', 'Retoure abholbereit'), ('ReturnComplete', 'Retoure abgeschlossen'), ('Missing', 'Vermisst')], default='Draft', max_length=20)),
                ('supplier_order_number', models.CharField(blank=True, max_length=100)),
                ('is_processed', models.BooleanField(default=False)),
                ('office_notes', models.TextField(blank=True)),
                ('needs_label', models.BooleanField(default=False)),
                ('withdrawn_at', models.DateTimeField(blank=True, null=True)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('supplier', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commissions', to='suppliers.supplier')),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commissions', to='warehouses.warehouse')),
            ],
            options={
                'db_table': 'commissions',
                'ordering': ['name'],
                'indexes': [
                    models.Index(fields=['warehouse', 'status'], name='commission_wh_status_idx'),
                    models.Index(fields=['deleted_at'], name='commission_deleted_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='CommissionItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('type', models.CharField(choices=[('Stock', 'Lager'), ('External', 'Extern')], default='Stock', max_length=10)),
                ('custom_name', models.CharField(blank=True, max_length=255)),
                ('external_reference', models.CharField(blank=True, max_length=255)),
                ('attachment_url', models.URLField(blank=True, max_length=1000)),
                ('amount', models.PositiveIntegerField(default=1)),
                ('is_picked', models.BooleanField(default=False)),
                ('is_backorder', models.BooleanField(default=False)),
                ('notes', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('article', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commission_items', to='inventory.article')),
                ('commission', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='commissions.commission')),
            ],
            options={
                'db_table': 'commission_items',
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='CommissionEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=50)),
                ('details', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('commission_name', models.CharField(blank=True, max_length=255)),
                ('commission', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='events', to='commissions.commission')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='commissionevent_entries', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'commission_events',
                'ordering': ['-created_at'],
                'abstract': False,
                'indexes': [
                    models.Index(fields=['action', '-created_at'], name='commevent_action_idx'),
                ],
            },
        ),
    ]
