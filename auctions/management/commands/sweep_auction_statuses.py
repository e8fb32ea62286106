from django.core.management.base import BaseCommand

from auctions.sweeper import StatusTransitionSweeper


class Command(BaseCommand):
    help = 'Moves due approved auctions to LIVE and due live auctions to CLOSED'

    def handle(self, *args, **options):
        result = StatusTransitionSweeper().sweep()

        if result.went_live or result.closed:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Started {result.went_live} auctions and closed {result.closed} auctions'
                )
            )
        else:
            self.stdout.write("No auctions due for a status change")
