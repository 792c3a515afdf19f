import enum
import logging
import threading
from dataclasses import dataclass

from django.conf import settings
from django.db import DatabaseError

from . import imaging, utils
from .cache import LIST_TAG, STATUS_KEY, CountryCache, NullCache
from .exceptions import PersistenceError
from .normalizer import normalize_country
from .repository import CountryRepository

logger = logging.getLogger(__name__)

# One refresh at a time per process; see RefreshService.refresh
_refresh_lock = threading.Lock()


class RefreshState(enum.Enum):
    IDLE = "idle"
    FETCHING_COUNTRIES = "fetching_countries"
    FETCHING_RATES = "fetching_rates"
    NORMALIZING = "normalizing"
    PERSISTING = "persisting"
    INVALIDATING_CACHE = "invalidating_cache"
    RENDERING = "rendering"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RefreshResult:
    total_countries: int
    last_refreshed_at: object
    skipped: int = 0
    image_generated: bool = False
    message: str = "Countries refreshed successfully"

    def as_dict(self):
        return {
            "message": self.message,
            "total_countries": self.total_countries,
            "last_refreshed_at": self.last_refreshed_at.isoformat(),
        }


class RefreshService:
    """
    Runs one refresh cycle:
    fetch countries -> fetch rates -> normalize -> upsert -> invalidate caches -> render.

    Fetch or persistence failures abort the cycle with the store unchanged.
    Cache and render failures are logged and do not change the outcome.
    """

    def __init__(
        self,
        repository=None,
        cache=None,
        fetch_countries=None,
        fetch_rates=None,
        rng=None,
        renderer=None,
        clock=None,
        lock=None,
    ):
        self.repository = repository or CountryRepository()
        self.cache = cache if cache is not None else NullCache()
        self.fetch_countries = fetch_countries or utils.fetch_countries
        self.fetch_rates = fetch_rates or utils.fetch_exchange_rates
        self.rng = rng or utils.make_rng()
        self.renderer = renderer or imaging.generate_summary_image
        self.clock = clock or utils.get_now
        self.lock = lock or _refresh_lock
        self.state = RefreshState.IDLE

    def _enter(self, state):
        logger.debug("refresh: %s -> %s", self.state.value, state.value)
        self.state = state

    def refresh(self):
        with self.lock:
            self._enter(RefreshState.IDLE)
            try:
                return self._run()
            except Exception:
                self._enter(RefreshState.FAILED)
                raise

    def _run(self):
        logger.info("Refresh started")

        # Both sources are read before the database is touched
        self._enter(RefreshState.FETCHING_COUNTRIES)
        countries_data = self.fetch_countries()
        self._enter(RefreshState.FETCHING_RATES)
        rates = self.fetch_rates()

        self._enter(RefreshState.NORMALIZING)
        now = self.clock()
        records, skipped = self.normalize_all(countries_data, rates, now)

        self._enter(RefreshState.PERSISTING)
        try:
            total = self.repository.upsert_batch(records)
        except (DatabaseError, OverflowError) as exc:
            logger.exception("Refresh persistence failed, rolled back")
            raise PersistenceError(details=str(exc)) from exc

        self._enter(RefreshState.INVALIDATING_CACHE)
        self.invalidate_caches()

        self._enter(RefreshState.RENDERING)
        image_generated = self.render_summary(total, now)

        self._enter(RefreshState.DONE)
        logger.info(
            "Refresh finished: %d countries stored, %d skipped", total, skipped
        )
        return RefreshResult(
            total_countries=total,
            last_refreshed_at=now,
            skipped=skipped,
            image_generated=image_generated,
        )

    def normalize_all(self, countries_data, rates, now):
        by_key = {}
        skipped = 0
        for raw in countries_data:
            record = normalize_country(raw, rates, now, self.rng)
            if record is None:
                skipped += 1
                logger.warning(
                    "Skipping country missing name/population: %r",
                    raw.get("name") if isinstance(raw, dict) else raw,
                )
                continue
            # later duplicates of the same normalized name win
            by_key[record["name_normalized"]] = record
        return list(by_key.values()), skipped

    def invalidate_caches(self):
        try:
            self.cache.invalidate([STATUS_KEY, LIST_TAG])
        except Exception:
            logger.warning("Cache invalidation failed after refresh", exc_info=True)

    def render_summary(self, total, now):
        try:
            top5 = self.repository.top_by_gdp(limit=5)
            self.renderer(total, top5, now)
            return True
        except Exception:
            logger.warning("Failed to generate summary image", exc_info=True)
            return False


def build_refresh_service(**overrides):
    options = {
        "repository": CountryRepository(),
        "cache": CountryCache(timeout=settings.COUNTRIES_QUERY_CACHE_TIMEOUT),
    }
    options.update(overrides)
    return RefreshService(**options)
