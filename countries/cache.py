import hashlib
import json
import logging

from django.core.cache import cache as default_cache

logger = logging.getLogger(__name__)

STATUS_KEY = "countries_status"
# Bumping the generation orphans every list-query entry at once
LIST_TAG = "countries"

CACHE_TIMEOUT = 60 * 60  # 1 hour


class NullCache:
    """No cache backend: reads always miss, invalidation does nothing."""

    def get(self, key):
        return None

    def set(self, key, value):
        pass

    def list_key(self, **filters):
        return None

    def invalidate(self, keys):
        pass


class CountryCache:
    """Caches status and list results on top of Django's cache framework."""

    def __init__(self, backend=None, timeout=CACHE_TIMEOUT):
        self.backend = backend if backend is not None else default_cache
        self.timeout = timeout

    def _generation(self, tag):
        return self.backend.get_or_set(f"{tag}:generation", 1, None)

    def list_key(self, **filters):
        # digest keeps keys backend-safe; None and "*" stay distinct
        digest = hashlib.md5(
            json.dumps(filters, sort_keys=True).encode("utf-8")
        ).hexdigest()
        return f"{LIST_TAG}:{self._generation(LIST_TAG)}:list:{digest}"

    def get(self, key):
        if key is None:
            return None
        return self.backend.get(key)

    def set(self, key, value):
        if key is not None:
            self.backend.set(key, value, self.timeout)

    def invalidate(self, keys):
        """Delete plain keys; for tags, move to a new generation."""
        for key in keys:
            if key == LIST_TAG:
                try:
                    self.backend.incr(f"{key}:generation")
                except ValueError:
                    # generation not set yet, nothing cached under it
                    self.backend.set(f"{key}:generation", 2, None)
            else:
                self.backend.delete(key)
        logger.debug("Invalidated cache keys %s", list(keys))
