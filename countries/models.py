from django.db import models


class Country(models.Model):
    # name: display form, trimmed
    name = models.CharField(max_length=255)
    # name_normalized: slug of name; identity for upsert and lookups
    name_normalized = models.CharField(max_length=255, unique=True, db_index=True)
    capital = models.CharField(max_length=255, null=True, blank=True)
    region = models.CharField(max_length=100, null=True, blank=True, db_index=True)
    population = models.PositiveBigIntegerField()
    currency_code = models.CharField(max_length=10, null=True, blank=True, db_index=True)
    # exchange_rate: local currency per 1 USD; null when not available
    exchange_rate = models.FloatField(null=True, blank=True)
    # estimated_gdp: 0 without currency, null with an unconvertible currency
    estimated_gdp = models.FloatField(null=True, blank=True)
    flag_url = models.TextField(null=True, blank=True)
    # last_refreshed_at: shared by every row written in one refresh cycle
    last_refreshed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'countries'
        verbose_name_plural = 'countries'

    def __str__(self):
        return self.name
