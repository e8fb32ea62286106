# auctions/tasks.py
import logging

from celery import shared_task

from auctions.sweeper import StatusTransitionSweeper

logger = logging.getLogger(__name__)


@shared_task
def sweep_auction_statuses_task():
    result = StatusTransitionSweeper().sweep()
    logger.debug("Auction status sweep finished: %s", result.as_dict())
    return result.as_dict()
