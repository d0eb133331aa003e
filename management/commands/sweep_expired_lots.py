"""
Management command to expire lots past their expiry date.

Usage:
    python manage.py sweep_expired_lots
    python manage.py sweep_expired_lots --warehouse ist-main
    python manage.py sweep_expired_lots --dry-run
"""

from django.core.management.base import BaseCommand, CommandError

from lotman import lots
from lotman.models import Lot, Warehouse


class Command(BaseCommand):
    """Sweep expired lots command."""

    help = 'Marks lots past their expiry date as expired'

    def add_arguments(self, parser):
        parser.add_argument(
            '--warehouse',
            help='Warehouse code (default: every active warehouse)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be expired without changing anything'
        )

    def handle(self, *args, **options):
        code = options.get('warehouse')
        if code:
            warehouses = list(Warehouse.objects.filter(code=code))
            if not warehouses:
                raise CommandError(f'Warehouse "{code}" not found')
        else:
            warehouses = list(Warehouse.objects.filter(is_active=True))

        for warehouse in warehouses:
            if options['dry_run']:
                count = Lot.objects.filter(warehouse=warehouse).past_expiry().count()
                self.stdout.write(f'{warehouse.code}: {count} lot(s) would be expired')
            else:
                expired = lots.sweep_expired_lots(warehouse)
                self.stdout.write(
                    self.style.SUCCESS(f'{warehouse.code}: {len(expired)} lot(s) expired')
                )
