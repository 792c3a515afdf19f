import logging
import os
import random
from datetime import datetime, timezone

import requests
from django.conf import settings
from requests.exceptions import RequestException

from .exceptions import SourceUnavailable

logger = logging.getLogger(__name__)


class Config:
    CACHE_DIR = "cache"

    @property
    def countries_api(self) -> str:
        return settings.COUNTRIES_API_URL

    @property
    def exchange_api(self) -> str:
        return settings.EXCHANGE_API_URL

    @property
    def timeout(self) -> float:
        return settings.COUNTRIES_API_TIMEOUT

    @property
    def cache_path(self) -> str:
        """Return absolute cache directory path (writable)."""
        if settings.COUNTRIES_CACHE_DIR:
            path = settings.COUNTRIES_CACHE_DIR
        elif settings.ENVIRONMENT == "production":
            path = "/tmp/cache"
        else:
            path = os.path.abspath(self.CACHE_DIR)
        os.makedirs(path, exist_ok=True)
        return path


config = Config()


def _get_json(url, which):
    try:
        resp = requests.get(url, timeout=config.timeout)
        resp.raise_for_status()
        return resp.json()
    except RequestException as exc:
        # raise_for_status and JSON decode errors are RequestException too
        logger.error("%s source failed: %s", which, exc)
        raise SourceUnavailable(which, reason=str(exc)) from exc
    except ValueError as exc:
        logger.error("%s source returned a non-JSON body: %s", which, exc)
        raise SourceUnavailable(which, reason=str(exc)) from exc


def fetch_countries():
    data = _get_json(config.countries_api, "countries")
    if not isinstance(data, list):
        logger.error("countries source returned %s, expected a list", type(data).__name__)
        raise SourceUnavailable("countries", reason="unexpected payload")
    return data


def fetch_exchange_rates():
    data = _get_json(config.exchange_api, "rates")
    # API returns 'rates' mapping
    rates = data.get("rates") if isinstance(data, dict) else None
    if not isinstance(rates, dict):
        logger.error("rates source returned no 'rates' mapping")
        raise SourceUnavailable("rates", reason="unexpected payload")

    table = {}
    for code, rate in rates.items():
        try:
            table[str(code).upper()] = float(rate)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-numeric rate %r for %s", rate, code)
    return table


def make_rng(seed=None):
    return random.Random(seed)


def make_multiplier(rng):
    return rng.randint(1000, 2000)


def get_summary_image_path():
    """Return full path to the summary image in the writable cache."""
    return os.path.join(config.cache_path, "summary.png")


def get_now():
    """Return current UTC datetime (aware)."""
    return datetime.now(timezone.utc)
