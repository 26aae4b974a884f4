# Generated manually for products and their packaging tiers

from decimal import Decimal
import django.core.validators
from django.db import migrations, models
import django.db.models.deletion


PACK_TYPE_CHOICES = [('homogeneous', 'Homogeneous'), ('mixed', 'Mixed')]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=200)),
                ('sku', models.CharField(blank=True, db_index=True, max_length=100, null=True, unique=True)),
                ('category', models.CharField(blank=True, db_index=True, max_length=100)),
                ('description', models.TextField(blank=True)),
                ('manufacturer', models.CharField(blank=True, max_length=200)),
                ('country', models.CharField(blank=True, max_length=100)),
                ('product_type', models.CharField(blank=True, max_length=100)),
                ('alcohol_percentage', models.DecimalField(blank=True, decimal_places=2, max_digits=4, null=True)),
                ('image', models.URLField(blank=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('draft', 'Draft'), ('archived', 'Archived')], db_index=True, default='draft', max_length=20)),
                ('structure', models.CharField(choices=[('simple', 'Simple (base unit only)'), ('hierarchical', 'Hierarchical (fpakk / mellompakk / toppakk)')], default='simple', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'products',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='BaseUnit',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('size', models.CharField(blank=True, max_length=50)),
                ('variant', models.CharField(blank=True, max_length=100)),
                ('sku', models.CharField(blank=True, max_length=100)),
                ('ean', models.CharField(blank=True, db_index=True, max_length=20)),
                ('weight', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('deposit', models.DecimalField(decimal_places=2, default=Decimal('0.00'), max_digits=10)),
                ('unit_price', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('dimensions', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='fpakk', to='catalog.product')),
            ],
            options={
                'db_table': 'product_base_units',
            },
        ),
        migrations.CreateModel(
            name='InnerPack',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pack_type', models.CharField(choices=PACK_TYPE_CHOICES, default='homogeneous', max_length=20)),
                ('quantity_per_box', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('ean', models.CharField(blank=True, db_index=True, max_length=20)),
                ('price_per_box', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('weight', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('dimensions', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='mellompakk', to='catalog.product')),
            ],
            options={
                'db_table': 'product_inner_packs',
            },
        ),
        migrations.CreateModel(
            name='InnerPackContent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('base_unit', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='inner_pack_contents', to='catalog.baseunit')),
                ('inner_pack', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='contents', to='catalog.innerpack')),
            ],
            options={
                'db_table': 'product_inner_pack_contents',
            },
        ),
        migrations.CreateModel(
            name='OuterPack',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('pack_type', models.CharField(choices=PACK_TYPE_CHOICES, default='homogeneous', max_length=20)),
                ('pallet_type', models.CharField(choices=[('eur', 'EUR pallet'), ('half', 'Half pallet'), ('quarter', 'Quarter pallet'), ('industrial', 'Industrial pallet'), ('other', 'Other')], default='eur', max_length=20)),
                ('boxes_per_pallet', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('price_per_pallet', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('weight', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('dimensions', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('product', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='toppakk', to='catalog.product')),
            ],
            options={
                'db_table': 'product_outer_packs',
            },
        ),
        migrations.CreateModel(
            name='OuterPackContent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('inner_pack', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='outer_pack_contents', to='catalog.innerpack')),
                ('outer_pack', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='contents', to='catalog.outerpack')),
            ],
            options={
                'db_table': 'product_outer_pack_contents',
            },
        ),
    ]
