"""
Caching utilities for dashboard aggregates
Uses the default Django cache (Redis through django-redis in production)
"""
from django.core.cache import cache
from functools import wraps
import hashlib
import logging

logger = logging.getLogger(__name__)

# Cache TTLs (in seconds)
SKU_STATISTICS_CACHE_TTL = 300  # 5 minutes
PHASE_SUMMARY_CACHE_TTL = 60  # 1 minute

# Every cached_query prefix, so invalidation can find them without a key scan
DASHBOARD_CACHE_PREFIXES = ('sku_statistics', 'phase_summary')


def make_cache_key(prefix, *args, **kwargs):
    """Generate a unique cache key from arguments"""
    key_data = f"{prefix}:{args}:{sorted(kwargs.items())}"
    key_hash = hashlib.md5(key_data.encode()).hexdigest()
    return f"{prefix}:{key_hash}"


def _generation_key(prefix):
    return f"{prefix}:generation"


def get_generation(prefix):
    """Current generation number of a key family; bumping it orphans every old key"""
    return cache.get_or_set(_generation_key(prefix), 1, None)


def bump_generation(prefix):
    key = _generation_key(prefix)
    try:
        cache.incr(key)
    except ValueError:
        cache.set(key, 2, None)


def cached_query(cache_ttl=60, key_prefix="query"):
    """
    Decorator to cache expensive queries

    Usage:
        @cached_query(cache_ttl=120, key_prefix="sku_statistics")
        def get_expensive_data(limit):
            # expensive query here
            return data
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            generation = get_generation(key_prefix)
            cache_key = make_cache_key(f"{key_prefix}:v{generation}", *args, **kwargs)

            cached_data = cache.get(cache_key)
            if cached_data is not None:
                logger.debug(f"Cache HIT for {key_prefix}: {cache_key}")
                return cached_data

            logger.debug(f"Cache MISS for {key_prefix}: {cache_key}")
            result = func(*args, **kwargs)
            cache.set(cache_key, result, cache_ttl)
            return result
        return wrapper
    return decorator


def invalidate_dashboard_cache():
    """Drop every cached dashboard aggregate"""
    for prefix in DASHBOARD_CACHE_PREFIXES:
        bump_generation(prefix)
    logger.info("Invalidated dashboard cache")
