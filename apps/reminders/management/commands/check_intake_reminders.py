from django.core.management.base import BaseCommand, CommandError

from apps.reminders.exceptions import SourceUnavailable
from apps.reminders.pipeline import ReminderContext, run_reminder_check


class Command(BaseCommand):
    help = 'Run one intake reminder pass against upcoming appointments and print the summary.'

    def handle(self, *args, **kwargs):
        self.stdout.write('Running intake reminder check...')
        try:
            summary = run_reminder_check(ReminderContext.from_settings())
        except SourceUnavailable as e:
            raise CommandError(str(e)) from e

        for key, value in summary.to_dict().items():
            self.stdout.write(f'{key}: {value}')
        self.stdout.write(self.style.SUCCESS('Reminder check complete.'))
