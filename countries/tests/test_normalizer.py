import math
import random
from datetime import datetime, timezone

from django.test import SimpleTestCase

from countries.normalizer import normalize_country, normalize_name

from .helpers import NIGERIA, RATES, FixedRandom

NOW = datetime(2025, 10, 22, 12, 0, tzinfo=timezone.utc)


class NormalizeNameTests(SimpleTestCase):
    def test_slug_forms(self):
        cases = {
            "United States of America": "united-states-of-america",
            "São Tomé and Príncipe": "sao-tome-and-principe",
            "NIGERIA": "nigeria",
            "côte d'Ivoire": "cote-divoire",
            "  Bosnia   and Herzegovina ": "bosnia-and-herzegovina",
            "Guinea-Bissau": "guinea-bissau",
            "--Korea (Republic of)--": "korea-republic-of",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(normalize_name(raw), expected)

    def test_empty_and_none(self):
        self.assertEqual(normalize_name(None), "")
        self.assertEqual(normalize_name("   "), "")
        self.assertEqual(normalize_name("!!!"), "")


class NormalizeCountryTests(SimpleTestCase):
    def test_currency_with_rate(self):
        record = normalize_country(NIGERIA, RATES, NOW, FixedRandom(1500))

        self.assertEqual(record["name"], "Nigeria")
        self.assertEqual(record["name_normalized"], "nigeria")
        self.assertEqual(record["capital"], "Abuja")
        self.assertEqual(record["region"], "Africa")
        self.assertEqual(record["flag_url"], "https://flagcdn.com/ng.svg")
        self.assertEqual(record["currency_code"], "NGN")
        self.assertEqual(record["exchange_rate"], 1600.23)
        self.assertAlmostEqual(record["estimated_gdp"], 206139589 * 1500 / 1600.23)
        self.assertEqual(record["last_refreshed_at"], NOW)

    def test_gdp_within_multiplier_bounds(self):
        rng = random.Random()
        for _ in range(50):
            record = normalize_country(NIGERIA, RATES, NOW, rng)
            self.assertGreaterEqual(record["estimated_gdp"], 206139589 * 1000 / 1600.23)
            self.assertLessEqual(record["estimated_gdp"], 206139589 * 2000 / 1600.23)

    def test_multiplier_drawn_from_integer_range(self):
        rng = FixedRandom()
        normalize_country(NIGERIA, RATES, NOW, rng)
        self.assertEqual(rng.calls, [(1000, 2000)])

    def test_seeded_random_source_is_reproducible(self):
        first = normalize_country(NIGERIA, RATES, NOW, random.Random(7))
        second = normalize_country(NIGERIA, RATES, NOW, random.Random(7))
        self.assertEqual(first["estimated_gdp"], second["estimated_gdp"])

    def test_no_currencies_gives_zero_gdp(self):
        for currencies in ([], None):
            raw = {"name": "No Currency Land", "population": 100, "currencies": currencies}
            record = normalize_country(raw, RATES, NOW, FixedRandom())
            self.assertIsNone(record["currency_code"])
            self.assertIsNone(record["exchange_rate"])
            self.assertEqual(record["estimated_gdp"], 0)

        record = normalize_country({"name": "Absent", "population": 1}, RATES, NOW, FixedRandom())
        self.assertEqual(record["estimated_gdp"], 0)

    def test_unknown_currency_gives_null_gdp(self):
        raw = {"name": "Unlisted", "population": 500, "currencies": [{"code": "XYZ"}]}
        rng = FixedRandom()
        record = normalize_country(raw, RATES, NOW, rng)
        self.assertEqual(record["currency_code"], "XYZ")
        self.assertIsNone(record["exchange_rate"])
        self.assertIsNone(record["estimated_gdp"])
        self.assertEqual(rng.calls, [])

    def test_non_positive_rate_gives_null_gdp(self):
        raw = {"name": "Zeroland", "population": 500, "currencies": [{"code": "ZZZ"}]}
        for rate in (0.0, -3.5, math.inf):
            record = normalize_country(raw, {"ZZZ": rate}, NOW, FixedRandom())
            self.assertEqual(record["currency_code"], "ZZZ")
            self.assertIsNone(record["exchange_rate"])
            self.assertIsNone(record["estimated_gdp"])

    def test_overflowing_gdp_gives_null_gdp(self):
        raw = {"name": "Tiny Rate Land", "population": 10, "currencies": [{"code": "TNY"}]}
        record = normalize_country(raw, {"TNY": 1e-310}, NOW, FixedRandom(1000))
        self.assertEqual(record["currency_code"], "TNY")
        self.assertIsNone(record["exchange_rate"])
        self.assertIsNone(record["estimated_gdp"])

    def test_largest_storable_population_is_kept(self):
        raw = {"name": "Big", "population": 2 ** 63 - 1}
        record = normalize_country(raw, RATES, NOW, FixedRandom())
        self.assertEqual(record["population"], 2 ** 63 - 1)

    def test_first_currency_wins(self):
        raw = {
            "name": "Zimbabwe",
            "population": 14862924,
            "currencies": [{"code": "BWP"}, {"code": "USD"}],
        }
        record = normalize_country(raw, {"BWP": 13.5, "USD": 1.0}, NOW, FixedRandom(1000))
        self.assertEqual(record["currency_code"], "BWP")
        self.assertEqual(record["exchange_rate"], 13.5)

    def test_currency_entry_without_code(self):
        raw = {"name": "Odd", "population": 10, "currencies": [{"name": "Mystery"}]}
        record = normalize_country(raw, RATES, NOW, FixedRandom())
        self.assertIsNone(record["currency_code"])
        self.assertIsNone(record["estimated_gdp"])

    def test_skips_rows_without_name_or_population(self):
        invalid = [
            {"capital": "Invalid City", "population": 1000},
            {"name": "", "population": 1000},
            {"name": "   ", "population": 1000},
            {"name": "Nopop"},
            {"name": "Nullpop", "population": None},
            {"name": "Badpop", "population": "lots"},
            {"name": "Negative", "population": -5},
            {"name": "Huge", "population": 10 ** 20},
            "not a dict",
        ]
        for raw in invalid:
            with self.subTest(raw=raw):
                self.assertIsNone(normalize_country(raw, RATES, NOW, FixedRandom()))

    def test_population_coerced_and_name_trimmed(self):
        raw = {"name": "  Ghana ", "population": "31072940", "capital": ""}
        record = normalize_country(raw, RATES, NOW, FixedRandom())
        self.assertEqual(record["name"], "Ghana")
        self.assertEqual(record["population"], 31072940)
        self.assertIsNone(record["capital"])
        self.assertIsNone(record["region"])
        self.assertIsNone(record["flag_url"])

    def test_zero_population_is_kept(self):
        raw = {"name": "Bouvet Island", "population": 0, "currencies": [{"code": "NOK"}]}
        record = normalize_country(raw, {"NOK": 10.0}, NOW, FixedRandom())
        self.assertEqual(record["population"], 0)
        self.assertEqual(record["estimated_gdp"], 0)
