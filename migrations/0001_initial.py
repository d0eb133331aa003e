"""
Initial migration for Lotman models.
"""

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models

import lotman.models.movement


class Migration(migrations.Migration):
    """Create Lotman models: Warehouse, Location, Product, Lot, Movement."""

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Warehouse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.SlugField(help_text='Unique identifier (e.g. ist-main)', unique=True, verbose_name='Code')),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Warehouse',
                'verbose_name_plural': 'Warehouses',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Product',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku', models.CharField(max_length=100, unique=True, verbose_name='SKU')),
                ('name', models.CharField(max_length=255, verbose_name='Name')),
                ('category', models.CharField(blank=True, db_index=True, default='', max_length=100, verbose_name='Category')),
                ('is_perishable', models.BooleanField(default=False, verbose_name='Perishable')),
                ('has_expiry_date', models.BooleanField(default=False, verbose_name='Tracks expiry date')),
                ('shelf_life_days', models.PositiveIntegerField(blank=True, help_text='Empty = no expiry derived on receipt', null=True, verbose_name='Shelf life (days)')),
                ('is_active', models.BooleanField(default=True, verbose_name='Active')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Product',
                'verbose_name_plural': 'Products',
                'ordering': ['sku'],
            },
        ),
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, verbose_name='Code')),
                ('name', models.CharField(blank=True, default='', max_length=100, verbose_name='Name')),
                ('zone', models.CharField(blank=True, default='', help_text='receiving, storage, picking, packing, shipping', max_length=50, verbose_name='Zone')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='locations', to='lotman.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Location',
                'verbose_name_plural': 'Locations',
                'ordering': ['warehouse', 'code'],
            },
        ),
        migrations.CreateModel(
            name='Lot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lot_number', models.CharField(db_index=True, help_text='Unique per product and warehouse, not globally', max_length=100, verbose_name='Lot number')),
                ('quantity_on_hand', models.PositiveIntegerField(default=0, verbose_name='On hand')),
                ('quantity_available', models.PositiveIntegerField(default=0, verbose_name='Available')),
                ('quantity_reserved', models.PositiveIntegerField(default=0, verbose_name='Reserved')),
                ('manufacture_date', models.DateField(blank=True, null=True, verbose_name='Manufacture date')),
                ('expiry_date', models.DateField(blank=True, help_text='Last day the lot may be used', null=True, verbose_name='Expiry date')),
                ('received_date', models.DateField(default=django.utils.timezone.localdate, verbose_name='Received date')),
                ('status', models.CharField(choices=[('available', 'Available'), ('reserved', 'Reserved'), ('expired', 'Expired'), ('quarantine', 'Quarantine'), ('consumed', 'Consumed')], db_index=True, default='available', max_length=20, verbose_name='Status')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='lotman.location', verbose_name='Location')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='lotman.product', verbose_name='Product')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='lots', to='lotman.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Lot',
                'verbose_name_plural': 'Lots',
            },
        ),
        migrations.CreateModel(
            name='Movement',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('movement_number', models.CharField(default=lotman.models.movement._movement_number, editable=False, max_length=50, unique=True, verbose_name='Movement number')),
                ('movement_type', models.CharField(choices=[('receipt', 'Receipt'), ('reservation', 'Reservation'), ('release', 'Release'), ('consumption', 'Consumption')], db_index=True, max_length=20, verbose_name='Type')),
                ('reason', models.CharField(help_text='Required. E.g. "picking_allocation", "receiving"', max_length=100, verbose_name='Reason')),
                ('quantity', models.PositiveIntegerField(verbose_name='Quantity')),
                ('lot_number', models.CharField(blank=True, default='', max_length=100, verbose_name='Lot number')),
                ('reference', models.CharField(blank=True, default='', help_text='External document, e.g. picking order number', max_length=100, verbose_name='Reference')),
                ('performed_by', models.CharField(blank=True, default='', max_length=100, verbose_name='Performed by')),
                ('timestamp', models.DateTimeField(db_index=True, default=django.utils.timezone.now, verbose_name='Timestamp')),
                ('metadata', models.JSONField(blank=True, default=dict, verbose_name='Metadata')),
                ('from_location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='lotman.location', verbose_name='From location')),
                ('lot', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='lotman.lot', verbose_name='Lot')),
                ('product', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='lotman.product', verbose_name='Product')),
                ('to_location', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='lotman.location', verbose_name='To location')),
                ('warehouse', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='movements', to='lotman.warehouse', verbose_name='Warehouse')),
            ],
            options={
                'verbose_name': 'Movement',
                'verbose_name_plural': 'Movements',
                'ordering': ['timestamp', 'pk'],
            },
        ),
        # Constraints
        migrations.AddConstraint(
            model_name='location',
            constraint=models.UniqueConstraint(fields=('warehouse', 'code'), name='unique_location_code_per_warehouse'),
        ),
        migrations.AddConstraint(
            model_name='lot',
            constraint=models.CheckConstraint(condition=models.Q(('quantity_on_hand', models.F('quantity_available') + models.F('quantity_reserved'))), name='lot_quantities_balance'),
        ),
        # Indexes
        migrations.AddIndex(
            model_name='lot',
            index=models.Index(fields=['product', 'warehouse', 'status'], name='lotman_lot_prod_wh_status_idx'),
        ),
        migrations.AddIndex(
            model_name='lot',
            index=models.Index(fields=['warehouse', 'lot_number'], name='lotman_lot_wh_number_idx'),
        ),
        migrations.AddIndex(
            model_name='lot',
            index=models.Index(fields=['expiry_date'], name='lotman_lot_expiry_idx'),
        ),
        migrations.AddIndex(
            model_name='movement',
            index=models.Index(fields=['lot', 'timestamp'], name='lotman_mov_lot_ts_idx'),
        ),
        migrations.AddIndex(
            model_name='movement',
            index=models.Index(fields=['product', 'warehouse'], name='lotman_mov_prod_wh_idx'),
        ),
    ]
