# Generated manually for tiered stock counts and goods receipts

from django.conf import settings
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


LEVEL_CHOICES = [('fpakk', 'Fpakk (base unit)'), ('mellompakk', 'Mellompakk (inner pack)'), ('toppakk', 'Toppakk (outer case)')]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('catalog', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Inventory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('fpakk', models.PositiveIntegerField(default=0)),
                ('mellompakk', models.PositiveIntegerField(default=0)),
                ('toppakk', models.PositiveIntegerField(default=0)),
                ('fpakk_threshold', models.PositiveIntegerField(default=10)),
                ('mellompakk_threshold', models.PositiveIntegerField(default=0)),
                ('toppakk_threshold', models.PositiveIntegerField(default=0)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='inventory', to='catalog.product')),
            ],
            options={
                'db_table': 'inventory',
                'verbose_name_plural': 'inventory',
            },
        ),
        migrations.CreateModel(
            name='StockReception',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('level', models.CharField(choices=LEVEL_CHOICES, default='fpakk', max_length=20)),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('note', models.TextField(blank=True)),
                ('received_at', models.DateTimeField(auto_now_add=True)),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='stock_receptions', to='catalog.product')),
                ('received_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='stock_receptions', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'stock_receptions',
                'ordering': ['-received_at'],
            },
        ),
    ]
