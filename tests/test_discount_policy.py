"""
Promo code tests against the shipped promo_codes.csv.

All checks run on a fixed date so validity windows do not drift.
"""
import pytest
import sys
import os
from datetime import date
from decimal import Decimal

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from storefront_pricing.config.settings import Settings
from storefront_pricing.engine import Discount, DiscountKind, InvalidDiscount, InvalidInput
from storefront_pricing.policy.discount_policy import DiscountPolicy
from storefront_pricing.services.discount_repository import DiscountRepository, parse_bool

TODAY = date(2025, 3, 1)


@pytest.fixture(scope="module")
def repository():
    return DiscountRepository.from_settings(Settings())


@pytest.fixture
def policy(repository):
    return DiscountPolicy(repository, today=TODAY)


def test_military_code(policy):
    result = policy.validate_code("MILITARY10", "44.98")

    assert result.valid, result.error
    assert result.discount.kind == DiscountKind.PERCENTAGE
    assert result.discount_amount == Decimal("4.50")


def test_code_lookup_ignores_case_and_spaces(policy):
    result = policy.validate_code("  military10 ", "44.98")
    assert result.valid
    assert result.code == "MILITARY10"


def test_first_order_minimum_spend(policy):
    result = policy.validate_code("FIRSTORDER", "20.00")

    assert not result.valid
    assert result.error == "Minimum order amount of £25.00 required for this promo code"


def test_first_order_capped(policy):
    result = policy.validate_code("FIRSTORDER", "400.00")
    assert result.valid
    assert result.discount_amount == Decimal("50.00")


def test_fixed_code_minimum_boundary(policy):
    at_minimum = policy.validate_code("SAVE5", "30.00")
    assert at_minimum.valid
    assert at_minimum.discount_amount == Decimal("5.00")

    below = policy.validate_code("SAVE5", "29.99")
    assert not below.valid
    assert "£30.00" in below.error


def test_welcome_code_window(policy):
    assert policy.validate_code("WELCOME20", "50.00").discount_amount == Decimal("10.00")

    expired = policy.validate_code("WELCOME20", "50.00", today=date(2025, 7, 1))
    assert not expired.valid
    assert expired.error == "This promo code has expired"


def test_valid_until_is_inclusive(policy):
    result = policy.validate_code("WELCOME20", "80.00", today=date(2025, 6, 30))
    assert result.valid


def test_inactive_code(policy):
    result = policy.validate_code("EXPIRED10", "100.00")
    assert not result.valid
    assert result.error == "This promo code is no longer active"


def test_unknown_code(policy):
    result = policy.validate_code("NOPE", "100.00")
    assert not result.valid
    assert result.error == "Invalid promo code"
    assert result.to_dict() == {"valid": False, "code": "NOPE", "error": "Invalid promo code"}


def test_not_yet_valid():
    spring = Discount(code="SPRING", kind="percentage", value=10, valid_from="2025-04-01")
    result = DiscountPolicy().validate(spring, "20", today=TODAY)
    assert not result.valid
    assert result.error == "This promo code is not yet valid"


def test_usage_limit():
    used_up = Discount(code="ONCE", kind="fixed", value=5, usage_limit=10, usage_count=10)
    never = Discount(code="NEVER", kind="fixed", value=5, usage_limit=0)
    policy = DiscountPolicy(DiscountRepository.from_records([used_up, never]), today=TODAY)

    for code in ("ONCE", "NEVER"):
        result = policy.validate_code(code, "40")
        assert result.error == "This promo code has reached its usage limit", code


def test_checks_report_first_failure():
    """Inactive wins over expired and minimum spend."""
    discount = Discount(
        code="OLD", kind="fixed", value=5, min_amount=100,
        valid_until="2024-01-01", active=False,
    )
    result = DiscountPolicy().validate(discount, "10", today=TODAY)
    assert result.error == "This promo code is no longer active"


def test_bad_requests_raise(policy):
    with pytest.raises(InvalidInput):
        policy.validate_code("", "10")
    with pytest.raises(InvalidInput):
        policy.validate_code("MILITARY10", "-1")
    with pytest.raises(InvalidInput):
        policy.validate_code("MILITARY10", "lots")


def test_unwrap(policy):
    assert policy.validate_code("SAVE5", "45").unwrap().code == "SAVE5"

    with pytest.raises(InvalidDiscount) as exc:
        policy.validate_code("SAVE5", "10").unwrap()
    assert exc.value.code == "SAVE5"


def test_valid_to_dict(policy):
    data = policy.validate_code("SAVE5", "45").to_dict()
    assert data == {
        "valid": True,
        "code": "SAVE5",
        "type": "fixed",
        "discount": "5",
        "description": "£5 off your order",
        "discount_amount": "5.00",
    }


def test_repository_active_codes(repository):
    assert {d.code for d in repository.list_active(TODAY)} == {"MILITARY10", "FIRSTORDER", "SAVE5", "WELCOME20"}
    assert "WELCOME20" not in {d.code for d in repository.list_active(date(2025, 7, 1))}
    assert repository.get("firstorder").remaining_uses == 850
    assert repository.get("MILITARY10").remaining_uses is None
    assert len(repository.list_all()) == 5


def test_repository_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        DiscountRepository(tmp_path / "nope.csv")


def test_repository_rejects_missing_columns(tmp_path):
    path = tmp_path / "promo_codes.csv"
    path.write_text("code,type\nX,fixed\n")
    with pytest.raises(ValueError):
        DiscountRepository(path)


def test_parse_bool():
    assert parse_bool("TRUE")
    assert parse_bool(" yes ")
    assert not parse_bool("false")
    assert not parse_bool("")


def test_repository_from_records_keeps_first_duplicate():
    first = Discount(code="spring", kind="fixed", value=5)
    repeat = Discount(code="SPRING", kind="fixed", value=50)
    repository = DiscountRepository.from_records([first, repeat])

    assert repository.promo_codes_csv is None
    assert repository.get("Spring").value == Decimal("5")
    assert len(repository.list_all()) == 1
    assert DiscountRepository().list_all() == []


def test_repository_table_plus_records():
    extra = Discount(code="STAFF25", kind="percentage", value=25)
    repository = DiscountRepository(Settings().promo_codes_csv, discounts=[extra])

    assert repository.get("staff25") is extra
    assert repository.get("MILITARY10") is not None
    assert len(repository.list_all()) == 6
