"""
Cache invalidation signals
Automatically invalidate dashboard aggregates when jobs or orders change
"""
from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
import logging
import threading
from contextlib import contextmanager

from .cache_utils import invalidate_dashboard_cache

logger = logging.getLogger(__name__)

# Thread-local storage to track signal suspension
_thread_locals = threading.local()


@contextmanager
def suspend_cache_signals():
    """
    Temporarily suspend cache invalidation signals for bulk operations.
    The dashboard cache is invalidated once when the block exits.
    """
    previous = is_suspended()
    _thread_locals.suspended = True
    try:
        yield
    finally:
        _thread_locals.suspended = previous
        if not previous:
            invalidate_dashboard_cache()


def is_suspended():
    return getattr(_thread_locals, 'suspended', False)


@receiver([post_save, post_delete], sender='jobs.Job')
@receiver([post_save, post_delete], sender='orders.Order')
@receiver([post_save, post_delete], sender='orders.OrderItem')
def invalidate_dashboard_on_change(sender, **kwargs):
    if is_suspended():
        return
    logger.debug(f"{sender.__name__} changed, invalidating dashboard cache")
    invalidate_dashboard_cache()
