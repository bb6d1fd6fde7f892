# Generated manually
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('suppliers', '0001_initial'),
        ('warehouses', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Article',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('sku', models.CharField(blank=True, help_text='Manufacturer part number', max_length=100)),
                ('manufacturer_skus', models.JSONField(blank=True, default=list)),
                ('stock', models.IntegerField(default=0)),
                ('target_stock', models.IntegerField(default=0)),
                ('location', models.CharField(blank=True, max_length=100)),
                ('category', models.CharField(blank=True, max_length=100)),
                ('price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('supplier', models.CharField(blank=True, max_length=200)),
                ('supplier_sku', models.CharField(blank=True, max_length=100)),
                ('ean', models.CharField(blank=True, max_length=50)),
                ('product_url', models.URLField(blank=True, max_length=1000)),
                ('image_url', models.URLField(blank=True, max_length=1000)),
                ('on_order_date', models.DateField(blank=True, null=True)),
                ('last_counted_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('warehouse', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='articles', to='warehouses.warehouse')),
            ],
            options={
                'db_table': 'articles',
                'ordering': ['category', 'location', 'name'],
                'indexes': [
                    models.Index(fields=['warehouse', 'category'], name='article_wh_category_idx'),
                    models.Index(fields=['sku'], name='article_sku_idx'),
                    models.Index(fields=['supplier_sku'], name='article_supplier_sku_idx'),
                    models.Index(fields=['ean'], name='article_ean_idx'),
                    models.Index(fields=['supplier'], name='article_supplier_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ArticleSupplier',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('supplier_sku', models.CharField(blank=True, max_length=100)),
                ('url', models.URLField(blank=True, max_length=1000)),
                ('is_preferred', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('article', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='supplier_links', to='inventory.article')),
                ('supplier', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='article_links', to='suppliers.supplier')),
            ],
            options={
                'db_table': 'article_suppliers',
                'unique_together': {('article', 'supplier')},
            },
        ),
        migrations.CreateModel(
            name='StockMovement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('amount', models.IntegerField()),
                ('type', models.CharField(choices=[('receive_goods', 'Wareneingang'), ('commission_pick', 'Kommissionierung'), ('manual_add', 'Manuelle Zubuchung'), ('manual_remove', 'Manuelle Entnahme'), ('audit_correction', 'Inventurkorrektur')], max_length=30)),
                ('reference', models.CharField(blank=True, max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('article', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='movements', to='inventory.article')),
                ('user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_movements', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'stock_movements',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['article', '-created_at'], name='movement_article_date_idx'),
                    models.Index(fields=['created_at'], name='movement_created_idx'),
                ],
            },
        ),
    ]
