# Recalculate Ratings Management Command
from django.core.management.base import BaseCommand, CommandError

from core.models import Service
from core.ratings import compute_rating_stats, recalculate_service_rating


class Command(BaseCommand):
    help = 'Recalculates avg_rating and total_reviews of every service from its reviews.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report the changes without saving them to the database.',
        )
        parser.add_argument(
            '--service',
            type=int,
            help='Recalculate a single service by id.',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=1000,
            help='Number of services read from the database at a time.',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        batch_size = options['batch_size']

        if batch_size < 1:
            raise CommandError('--batch-size must be a positive integer.')

        services = Service.objects.all().order_by('pk')
        if options['service'] is not None:
            services = services.filter(pk=options['service'])
            if not services.exists():
                raise CommandError(f"Service {options['service']} does not exist.")

        fixed = self.recalculate_services(services, dry_run, batch_size)

        if dry_run:
            self.stdout.write(self.style.SUCCESS(f'Dry run completed. {fixed} service(s) would change. No changes saved.'))
        else:
            self.stdout.write(self.style.SUCCESS(f'Recalculation completed successfully. {fixed} service(s) updated.'))

    def recalculate_services(self, services, dry_run, batch_size):
        """
        Compare each service's cached rating with its review set.

        Writes go through recalculate_service_rating, which recomputes under
        the service row lock, so a review saved while the command runs is
        never overwritten with an older aggregate.
        """
        self.stdout.write('Recalculating service ratings...')
        fixed = 0
        count = 0

        rows = services.values_list('pk', 'service_title', 'avg_rating', 'total_reviews')
        for pk, title, old_avg, old_total in rows.iterator(chunk_size=batch_size):
            if dry_run:
                new_avg, new_total = compute_rating_stats(pk)
            else:
                result = recalculate_service_rating(pk)
                if result is None:
                    # Deleted since the listing was read
                    continue
                new_avg, new_total = result

            if old_avg != new_avg or old_total != new_total:
                fixed += 1
                if dry_run:
                    self.stdout.write(
                        f'  [DRY-RUN] Service {pk} ({title}): '
                        f'Rating {old_avg} -> {new_avg}, Count {old_total} -> {new_total}'
                    )

            count += 1
            if count % 100 == 0:
                self.stdout.write(f'Processed {count} services...')

        self.stdout.write(f'Processed {count} services total.')
        return fixed
