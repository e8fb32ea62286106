import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'wastebid.settings')

app = Celery('wastebid')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

app.conf.beat_schedule = {
    'sweep-auction-statuses': {
        'task': 'auctions.tasks.sweep_auction_statuses_task',
        # same env var as settings.AUCTION_SWEEP_INTERVAL_SECONDS
        'schedule': float(os.environ.get('AUCTION_SWEEP_INTERVAL_SECONDS', '60')),
    },
}
