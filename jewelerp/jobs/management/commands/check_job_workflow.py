"""
Django management command to check every job's status against the workflow map
"""
from collections import Counter

from django.core.management.base import BaseCommand, CommandError

from jewelerp.jobs import workflow
from jewelerp.jobs.models import Job


class Command(BaseCommand):
    help = 'Report jobs whose status has no workflow phase and count jobs per phase'

    def add_arguments(self, parser):
        parser.add_argument(
            '--strict',
            action='store_true',
            help='Exit with an error when any job has an unmapped status',
        )
        parser.add_argument(
            '--order',
            help='Check the jobs of one order only (order id, e.g. O-0042)',
        )

    def handle(self, *args, **options):
        jobs = Job.objects.select_related('order').order_by('id')
        if options.get('order'):
            jobs = jobs.filter(order__order_id=options['order'])

        self.stdout.write("=" * 60)
        self.stdout.write(self.style.SUCCESS("JOB WORKFLOW CHECK"))
        self.stdout.write("=" * 60)

        phase_counts = Counter()
        unmapped = []
        for job in jobs.iterator():
            try:
                phase_counts[workflow.phase_for_status(job.status)] += 1
            except workflow.UnmappedStatusError as e:
                unmapped.append((job, e.status))

        self.stdout.write(f"Jobs checked: {sum(phase_counts.values()) + len(unmapped)}")
        for phase in workflow.JOB_PHASES:
            label = workflow.phase_info(phase)['label']
            self.stdout.write(f"  {label}: {phase_counts.get(phase, 0)}")

        if not unmapped:
            self.stdout.write(self.style.SUCCESS("All job statuses map to a phase"))
            return

        self.stdout.write(self.style.WARNING(f"Jobs with unmapped status: {len(unmapped)}"))
        for job, status in unmapped:
            self.stdout.write(f"  {job.job_id} (order {job.order.order_id}): {status!r}")

        if options.get('strict'):
            raise CommandError(f"{len(unmapped)} job(s) have a status with no workflow phase")
