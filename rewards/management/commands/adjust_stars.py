"""
Operator command to add or deduct identity stars.

Usage:
    python manage.py adjust_stars alice 50       # grant 50 stars to @alice
    python manage.py adjust_stars +60123456789 -5
"""
from django.core.management.base import BaseCommand, CommandError

from config import errors
from rewards.ledger import admin_adjust


class Command(BaseCommand):
    help = 'Adjust the granted star total of an identity by username or phone'

    def add_arguments(self, parser):
        parser.add_argument('identifier', help='Username (case-insensitive) or phone number')
        parser.add_argument('delta', type=int, help='Signed number of stars (0 only reports current totals)')
        parser.add_argument(
            '--reason',
            default='',
            help='Free-text reference stored on the ledger entry',
        )

    def handle(self, *args, **options):
        reference = options['reason'] or 'adjust_stars command'
        try:
            result = admin_adjust(options['identifier'], options['delta'], reference=reference)
        except errors.StarsError as e:
            raise CommandError(f"{e.code}: {e.message}")

        self.stdout.write(self.style.SUCCESS(
            f"Adjusted {result['username'] or result['phone']} by {options['delta']:+d}: "
            f"granted={result['granted_total']} claimed={result['claimed_total']} pending={result['pending']}"
        ))
