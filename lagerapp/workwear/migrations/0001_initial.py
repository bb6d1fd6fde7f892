# Generated manually
import django.db.models.deletion
import lagerapp.workwear.models
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='WorkwearTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('category', models.CharField(max_length=100)),
                ('article_number', models.CharField(blank=True, max_length=100)),
                ('price', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('image_url', models.URLField(blank=True, max_length=1000)),
                ('is_active', models.BooleanField(default=True)),
                ('has_logo', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'workwear_templates',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='WorkwearSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('logo_url', models.URLField(blank=True, max_length=1000)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'workwear_settings',
                'verbose_name_plural': 'Workwear settings',
            },
        ),
        migrations.CreateModel(
            name='WorkwearBudget',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('year', models.PositiveIntegerField(default=lagerapp.workwear.models.current_year)),
                ('budget_limit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='workwear_budgets', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'workwear_budgets',
                'unique_together': {('user', 'year')},
            },
        ),
        migrations.CreateModel(
            name='UserSize',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('category', models.CharField(max_length=100)),
                ('size_value', models.CharField(max_length=20)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='workwear_sizes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'workwear_user_sizes',
                'ordering': ['category'],
                'unique_together': {('user', 'category')},
            },
        ),
        migrations.CreateModel(
            name='WorkwearOrder',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('REQUESTED', 'Angefragt'), ('ORDERED', 'Bestellt'), ('RETURNED', 'Retourniert'), ('COMPLETED', 'Abgeschlossen')], default='REQUESTED', max_length=20)),
                ('total_amount', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='workwear_orders', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'workwear_orders',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='WorkwearOrderItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('size', models.CharField(blank=True, max_length=20)),
                ('use_logo', models.BooleanField(default=False)),
                ('price_at_order', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('order', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='items', to='workwear.workwearorder')),
                ('template', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='order_items', to='workwear.workweartemplate')),
            ],
            options={
                'db_table': 'workwear_order_items',
                'ordering': ['id'],
            },
        ),
    ]
