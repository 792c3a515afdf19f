from unittest import mock

import requests

from countries.normalizer import normalize_name

NIGERIA = {
    "name": "Nigeria",
    "capital": "Abuja",
    "region": "Africa",
    "population": 206139589,
    "flag": "https://flagcdn.com/ng.svg",
    "currencies": [{"code": "NGN", "name": "Nigerian naira", "symbol": "₦"}],
}

GHANA = {
    "name": "Ghana",
    "capital": "Accra",
    "region": "Africa",
    "population": 31072940,
    "flag": "https://flagcdn.com/gh.svg",
    "currencies": [{"code": "GHS", "name": "Ghanaian cedi", "symbol": "₵"}],
}

RATES = {"NGN": 1600.23, "GHS": 15.34, "USD": 1.0}


class FixedRandom:
    """Stands in for random.Random with a constant multiplier."""

    def __init__(self, value=1500):
        self.value = value
        self.calls = []

    def randint(self, a, b):
        self.calls.append((a, b))
        return self.value


def fake_response(payload=None, status_code=200, json_error=None):
    resp = mock.Mock()
    resp.status_code = status_code
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Server Error")
    else:
        resp.raise_for_status.return_value = None
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = payload
    return resp


def fake_sources(countries=None, rates=None, countries_status=200, rates_status=200):
    """side_effect for requests.get routing by URL to the two sources."""
    countries_resp = fake_response(countries if countries is not None else [], countries_status)
    rates_resp = fake_response({"result": "success", "rates": rates if rates is not None else {}}, rates_status)

    def get(url, *args, **kwargs):
        if "restcountries" in url:
            return countries_resp
        return rates_resp

    return get


def make_record(name, population=1000, **fields):
    record = {
        "name": name,
        "name_normalized": normalize_name(name),
        "capital": None,
        "region": None,
        "population": population,
        "currency_code": None,
        "exchange_rate": None,
        "estimated_gdp": 0.0,
        "flag_url": None,
        "last_refreshed_at": None,
    }
    record.update(fields)
    return record
