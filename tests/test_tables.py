"""
Reference table lookups: country markup rules, tax rates, currencies.
"""
import pandas as pd
import pytest

from travel_pricing.tables import CountryMarkupTable, CurrencyLookup, TaxRateTable


@pytest.fixture
def country_table(settings):
    return CountryMarkupTable(settings.country_markup_rules)


@pytest.fixture
def tax_table(settings):
    return TaxRateTable(settings.tax_rates)


@pytest.fixture
def currency_lookup(settings):
    return CurrencyLookup(settings.currencies)


@pytest.mark.parametrize("code,expected", [
    ('TH', 80.0),    # 8% standard
    ('AE', 120.0),   # 10% premium ×1.2
    ('SG', 180.0),   # 12% luxury ×1.5
    ('ID', 64.0),    # 8% budget ×0.8
    ('th', 80.0),
])
def test_country_percentage_rules(country_table, code, expected):
    assert country_table.markup_for(code, 1000, 2) == pytest.approx(expected)


def test_country_fixed_rule_is_per_person(country_table):
    # 150 per person, luxury tier
    assert country_table.markup_for('MV', 1000, 3) == pytest.approx(675)


def test_unknown_and_inactive_countries_have_no_rule(country_table):
    assert country_table.markup_for('ZZ', 1000, 2) is None
    assert country_table.markup_for('FR', 1000, 2) is None
    assert country_table.markup_for(None, 1000, 2) is None


def test_country_rule_with_no_cost_or_pax(country_table):
    assert country_table.markup_for('TH', 0, 2) == 0
    assert country_table.markup_for('TH', 1000, 0) == 0


def test_seasonal_adjustment_applies():
    df = pd.DataFrame([{
        'country_code': 'FR', 'country_name': 'France', 'currency': 'EUR', 'currency_symbol': '€',
        'default_markup': '12', 'markup_type': 'percentage', 'tier': 'standard',
        'seasonal_adjustment': '5', 'region': 'Europe', 'is_active': 'true',
    }])
    table = CountryMarkupTable(rules_df=df)
    assert table.markup_for('FR', 1000, 2) == pytest.approx(126)


def test_list_rules_only_active(country_table):
    codes = {rule.country_code for rule in country_table.list_rules()}
    assert 'TH' in codes
    assert 'FR' not in codes


def test_tax_exact_service_type(tax_table):
    assert tax_table.rate_for('IN', 'accommodation').rate == 12


def test_tax_falls_back_to_country_default(tax_table):
    rate = tax_table.rate_for('IN', 'activities')
    assert rate.rate == 5
    assert rate.service_type == 'all'


def test_tax_unknown_country(tax_table):
    assert tax_table.rate_for('ZZ') is None
    assert tax_table.rate_for(None) is None


def test_currency_by_code_and_name(currency_lookup):
    assert currency_lookup.lookup('IN').currency_code == 'INR'
    assert currency_lookup.lookup('united kingdom').currency_symbol == '£'


def test_currency_defaults_to_usd(currency_lookup):
    assert currency_lookup.lookup('Atlantis').currency_code == 'USD'
    assert currency_lookup.lookup(None).currency_symbol == '$'


def test_currency_default_code(currency_lookup):
    assert currency_lookup.lookup('Atlantis', default_code='GBP').currency_symbol == '£'
    assert currency_lookup.lookup('Atlantis', default_code='XXX').currency_code == 'USD'
    assert currency_lookup.lookup('TH', default_code='GBP').currency_code == 'THB'
