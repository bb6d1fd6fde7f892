# Generated manually
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('commissions', '0001_initial'),
    ]

    operations = [
        migrations.AddField(
            model_name='commission',
            name='stock_booked',
            field=models.BooleanField(default=False),
        ),
    ]
