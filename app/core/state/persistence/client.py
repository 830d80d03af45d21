"""Redis client factory"""
import warnings

from django.core.cache import CacheKeyWarning, cache
from django_redis.client.default import DefaultClient


def get_redis_client():
    """Raw Redis client from the django-redis cache backend

    Sessions share the connection pool configured in settings.CACHES.

    Raises:
        RuntimeError: The default cache is not backed by django-redis
    """
    warnings.filterwarnings("ignore", category=CacheKeyWarning)

    client = getattr(cache, "client", None)
    if not isinstance(client, DefaultClient):
        raise RuntimeError("Cache backend is not django-redis DefaultClient")

    return client.get_client(write=True)
