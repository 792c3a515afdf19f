"""
Turns one raw country payload from the countries API into the field values
persisted for it. Pure: no database or network access.
"""
import math

from django.utils.text import slugify

from . import utils

# population is stored in a signed 64-bit column
MAX_POPULATION = 2 ** 63 - 1


def normalize_name(name):
    """
    Identity key for a country name: ASCII lowercase slug.

    "  Côte d'Ivoire " -> "cote-divoire", "U.S. Virgin Islands" -> "us-virgin-islands"
    """
    if name is None:
        return ""
    # slugify keeps underscores; they are separators here
    slug = slugify(str(name).strip().replace("_", " "))
    return slug.strip("-")


def _optional_str(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _population(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        population = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if population < 0 or population > MAX_POPULATION:
        return None
    return population


def derive_currency(population, currencies, rates, rng):
    """
    Returns (currency_code, exchange_rate, estimated_gdp).

    No currencies at all      -> (None, None, 0)
    Code with a rate > 0      -> (code, rate, population * randint(1000, 2000) / rate)
    Code without usable rate  -> (code, None, None)
    GDP overflowing a float   -> (code, None, None)
    """
    if not currencies:
        return None, None, 0.0

    first_currency = currencies[0] if isinstance(currencies[0], dict) else {}
    currency_code = _optional_str(first_currency.get("code"))
    if currency_code:
        currency_code = currency_code.upper()

    rate = rates.get(currency_code) if currency_code else None
    if rate is None or not math.isfinite(rate) or rate <= 0:
        return currency_code, None, None

    multiplier = utils.make_multiplier(rng)
    estimated_gdp = (population * multiplier) / rate
    if not math.isfinite(estimated_gdp):
        return currency_code, None, None
    return currency_code, rate, estimated_gdp


def normalize_country(raw, rates, now, rng):
    """
    Build the persisted field values for one raw country, or None to skip it.

    Rows without a name or a usable population are skipped.
    """
    if not isinstance(raw, dict):
        return None

    name = _optional_str(raw.get("name"))
    population = _population(raw.get("population"))
    if not name or population is None:
        return None

    name_normalized = normalize_name(name)
    if not name_normalized:
        return None

    currencies = raw.get("currencies") or []
    if not isinstance(currencies, list):
        currencies = [currencies]
    currency_code, exchange_rate, estimated_gdp = derive_currency(
        population, currencies, rates, rng
    )

    return {
        "name": name,
        "name_normalized": name_normalized,
        "capital": _optional_str(raw.get("capital")),
        "region": _optional_str(raw.get("region")),
        "population": population,
        "currency_code": currency_code,
        "exchange_rate": exchange_rate,
        "estimated_gdp": estimated_gdp,
        "flag_url": _optional_str(raw.get("flag")),
        "last_refreshed_at": now,
    }
