import pytest

from backoffice.models import Customer, Product
from backoffice.validation import (
    MAX_AMOUNT_CENTS,
    InsufficientStockError,
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    clean_text,
    coerce_int,
    enforce_positive_amount,
    validate_payload,
)

POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "price_cents", "wholesale_price_cents"},
    required_on_create={"name", "price_cents"},
)


def test_form_strings_are_coerced(app):
    patch = validate_payload(
        model=Product,
        payload={"name": " Fideos ", "code": "", "price_cents": "450", "wholesale_price_cents": ""},
        policy=POLICY,
        partial=False,
    )
    assert patch == {"name": "Fideos", "code": None, "price_cents": 450, "wholesale_price_cents": None}


@pytest.mark.parametrize("value", ["1e3", "4.5", 4.5, "abc", True, ""])
def test_coerce_int_rejects_non_integers(value):
    with pytest.raises(ValidationError):
        coerce_int("price_cents", value)


def test_required_fields(app):
    with pytest.raises(ValidationError, match="price_cents"):
        validate_payload(model=Product, payload={"name": "Fideos"}, policy=POLICY, partial=False)


def test_max_length(app):
    policy = ModelValidationPolicy(writable_fields={"name", "phone"})
    with pytest.raises(ValidationError, match="max length"):
        validate_payload(model=Customer, payload={"name": "x", "phone": "9" * 40}, policy=policy, partial=True)


def test_positive_amount():
    assert enforce_positive_amount("amount_cents", "150") == 150
    for bad in (0, -1, None, "  "):
        with pytest.raises(ValidationError):
            enforce_positive_amount("amount_cents", bad)


def test_insufficient_stock_is_a_conflict():
    err = InsufficientStockError(7, requested=5, available=2)
    assert isinstance(err, ConflictError)
    assert err.details == {"product_id": 7, "requested_quantity": 5, "available": 2}


def test_blank_on_defaulted_column_is_dropped(app):
    policy = ModelValidationPolicy(writable_fields={"name", "category"}, required_on_create={"name"})
    patch = validate_payload(model=Customer, payload={"name": "Juan", "category": "  "}, policy=policy, partial=False)
    assert patch == {"name": "Juan"}


def test_clean_text():
    assert clean_text("phone", "  0981 ") == "0981"
    assert clean_text("phone", "   ") is None
    assert clean_text("phone", None) is None
    with pytest.raises(ValidationError, match="must be a string"):
        clean_text("phone", 981)


def test_amount_limit_fits_a_32_bit_column():
    assert enforce_positive_amount("amount_cents", MAX_AMOUNT_CENTS) == 2**31 - 1
    with pytest.raises(ValidationError, match="cannot exceed"):
        enforce_positive_amount("amount_cents", MAX_AMOUNT_CENTS + 1)
