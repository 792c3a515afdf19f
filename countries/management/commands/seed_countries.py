from django.core.management.base import BaseCommand

from countries.cache import LIST_TAG, STATUS_KEY, CountryCache
from countries.normalizer import normalize_name
from countries.repository import CountryRepository
from countries.utils import get_now

SEED_COUNTRIES = [
    {
        "name": "Nigeria", "capital": "Abuja", "region": "Africa",
        "population": 206139589, "currency_code": "NGN",
        "exchange_rate": 1600.23, "estimated_gdp": 25767448125.2,
        "flag_url": "https://flagcdn.com/ng.svg",
    },
    {
        "name": "United States", "capital": "Washington, D.C.", "region": "Americas",
        "population": 331002651, "currency_code": "USD",
        "exchange_rate": 1.0, "estimated_gdp": 331002651000.0,
        "flag_url": "https://flagcdn.com/us.svg",
    },
    {
        "name": "No Currency Land", "capital": None, "region": "Test",
        "population": 100, "currency_code": None,
        "exchange_rate": None, "estimated_gdp": 0.0, "flag_url": None,
    },
    {
        "name": "Unknown Rate Land", "capital": None, "region": "Test",
        "population": 500, "currency_code": "XYZ",
        "exchange_rate": None, "estimated_gdp": None, "flag_url": None,
    },
]


class Command(BaseCommand):
    help = "Load a small fixed set of countries for local development."

    def handle(self, *args, **options):
        now = get_now()
        records = [
            dict(c, name_normalized=normalize_name(c["name"]), last_refreshed_at=now)
            for c in SEED_COUNTRIES
        ]
        total = CountryRepository().upsert_batch(records, prune=False)
        CountryCache().invalidate([STATUS_KEY, LIST_TAG])
        self.stdout.write(self.style.SUCCESS(
            f"Seeded {len(records)} countries ({total} stored)"
        ))
