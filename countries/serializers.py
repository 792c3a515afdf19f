from rest_framework import serializers

from .models import Country


class CountrySerializer(serializers.ModelSerializer):
    class Meta:
        model = Country
        fields = [
            'id', 'name', 'capital', 'region', 'population',
            'currency_code', 'exchange_rate', 'estimated_gdp',
            'flag_url', 'last_refreshed_at'
        ]
        read_only_fields = fields


class CountryQuerySerializer(serializers.Serializer):
    """Query parameters accepted by GET /countries."""

    region = serializers.CharField(required=False)
    currency = serializers.CharField(required=False)
    sort = serializers.ChoiceField(
        required=False,
        choices=['gdp_desc', 'gdp_asc', 'population_desc', 'population_asc'],
    )

    def validate(self, data):
        unknown = set(self.initial_data) - set(self.fields)
        if unknown:
            raise serializers.ValidationError(
                {key: "is not a valid filter" for key in sorted(unknown)}
            )
        return data
