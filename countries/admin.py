from django.contrib import admin

from .models import Country


@admin.register(Country)
class CountryAdmin(admin.ModelAdmin):
    list_display = ("name", "region", "population", "currency_code", "estimated_gdp", "last_refreshed_at")
    list_filter = ("region",)
    search_fields = ("name", "name_normalized", "currency_code")
