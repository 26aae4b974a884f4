"""
Management command to report stock per packaging tier and flag low stock
Usage: python manage.py check_inventory [--low-only] [--product-id ID]
"""
from django.core.management.base import BaseCommand
from backend.catalog.models import Product
from backend.inventory.models import Inventory


class Command(BaseCommand):
    help = 'Show stock counts per packaging tier, derived base-unit totals and low stock warnings'

    def add_arguments(self, parser):
        parser.add_argument(
            '--product-id',
            type=int,
            help='Check specific product ID only',
        )
        parser.add_argument(
            '--low-only',
            action='store_true',
            help='Only show products with at least one tier at or below its threshold',
        )

    def handle(self, *args, **options):
        product_id = options.get('product_id')
        low_only = options.get('low_only', False)

        products = Product.objects.select_related('fpakk', 'mellompakk', 'toppakk').order_by('name')
        if product_id:
            products = products.filter(id=product_id)

        self.stdout.write("=" * 80)
        self.stdout.write(self.style.SUCCESS("INVENTORY BY PACKAGING LEVEL"))
        self.stdout.write("=" * 80)

        missing = 0
        low = 0
        for product in products:
            inventory = Inventory.objects.filter(product=product).first()
            if inventory is None:
                missing += 1
                self.stdout.write(self.style.WARNING(f"{product.name}: no inventory row"))
                continue
            # Reuse the loaded product so totals see the prefetched tiers
            inventory.product = product

            low_levels = inventory.low_stock_levels()
            if low_levels:
                low += 1
            elif low_only:
                continue

            self.stdout.write("")
            self.stdout.write(f"{product.name} [{product.sku or 'NO-SKU'}] ({product.structure})")
            for level in product.available_levels():
                line = f"  {level:<11} {product.format_level(level, getattr(inventory, level))}"
                if level in low_levels:
                    self.stdout.write(self.style.WARNING(f"{line}  <= threshold {getattr(inventory, f'{level}_threshold')}"))
                else:
                    self.stdout.write(line)
            self.stdout.write(f"  total       {inventory.total_units} stk")

        self.stdout.write("")
        self.stdout.write("=" * 80)
        self.stdout.write(f"Products checked: {products.count()}")
        self.stdout.write(f"Low stock: {low}")
        if missing:
            self.stdout.write(self.style.WARNING(f"Missing inventory rows: {missing}"))
