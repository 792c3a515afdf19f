import logging

from django.db import transaction
from django.db.models import F, Max, Value
from django.db.models.functions import Coalesce

from .exceptions import NotFound, ValidationError
from .models import Country
from .normalizer import normalize_name

logger = logging.getLogger(__name__)

# Fields overwritten when a refreshed row collides on name_normalized
UPSERT_FIELDS = [
    "name", "capital", "region", "population",
    "currency_code", "exchange_rate", "estimated_gdp",
    "flag_url", "last_refreshed_at", "updated_at",
]

SORT_FIELDS = {
    "gdp_desc": ("estimated_gdp", True),
    "gdp_asc": ("estimated_gdp", False),
    "population_desc": ("population", True),
    "population_asc": ("population", False),
}

BATCH_SIZE = 100


class CountryRepository:
    """All reads and writes of the countries table go through here."""

    model = Country

    def upsert_batch(self, records, prune=True):
        """
        Write one refresh snapshot atomically.

        Inserts new rows, overwrites UPSERT_FIELDS of rows whose
        name_normalized already exists and, with prune, deletes rows the
        snapshot no longer contains. Returns the table row count as seen inside
        the same transaction. Raises DatabaseError with nothing applied.
        """
        objs = [self.model(**record) for record in records]
        keys = [obj.name_normalized for obj in objs]

        with transaction.atomic():
            if objs:
                self.model.objects.bulk_create(
                    objs,
                    batch_size=BATCH_SIZE,
                    update_conflicts=True,
                    unique_fields=["name_normalized"],
                    update_fields=UPSERT_FIELDS,
                )
            pruned = 0
            if prune:
                pruned, _ = self.model.objects.exclude(name_normalized__in=keys).delete()
            total = self.model.objects.count()

        logger.info("Upserted %d countries, pruned %d", len(objs), pruned)
        return total

    def count(self):
        return self.model.objects.count()

    def _valid(self):
        return self.model.objects.filter(name__isnull=False, population__isnull=False).exclude(name="")

    def list(self, region=None, currency=None, sort=None):
        qs = self._valid()
        if region:
            qs = qs.filter(region=region)
        if currency:
            qs = qs.filter(currency_code=currency.strip().upper())

        if sort:
            if sort not in SORT_FIELDS:
                raise ValidationError(
                    {"sort": f"must be one of {', '.join(SORT_FIELDS)}"}
                )
            field, descending = SORT_FIELDS[sort]
            key = F(field).desc(nulls_last=True) if descending else F(field).asc(nulls_last=True)
            qs = qs.order_by(key, "name", "id")
        else:
            qs = qs.order_by("created_at", "id")
        return list(qs)

    def find_by_name(self, name):
        name_normalized = normalize_name(name)
        if not name_normalized:
            raise NotFound()
        try:
            return self.model.objects.get(name_normalized=name_normalized)
        except self.model.DoesNotExist:
            raise NotFound()

    def delete_by_name(self, name):
        country = self.find_by_name(name)
        country.delete()
        logger.info("Deleted country %s", country.name_normalized)
        return country

    def top_by_gdp(self, limit=5):
        """Highest estimated_gdp first, missing GDP ranked as 0."""
        return list(
            self.model.objects.annotate(gdp_rank=Coalesce("estimated_gdp", Value(0.0)))
            .order_by("-gdp_rank", "name")[:limit]
        )

    def status(self):
        last = self.model.objects.aggregate(last=Max("last_refreshed_at"))["last"]
        return {
            "total_countries": self.count(),
            "last_refreshed_at": last.isoformat() if last else None,
        }
