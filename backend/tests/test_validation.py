"""Payload validation against model columns and route policies."""

import pytest

from wirebazaar.models import Address, Product
from wirebazaar.validation import (
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_address,
    enforce_rules_inquiry,
    enforce_rules_product,
    validate_payload,
)

POLICY = ModelValidationPolicy(
    writable_fields={"name", "price", "stock_quantity", "is_active", "description"},
    required_on_create={"name", "price"},
)


def _validate(payload, partial=False):
    return validate_payload(model=Product, payload=payload, policy=POLICY, partial=partial)


class TestValidatePayload:

    def test_coercion(self):
        patch = _validate({"name": "  Conduit ", "price": "120.50", "stock_quantity": "7", "is_active": "false"})
        assert patch == {"name": "Conduit", "price": 120.5, "stock_quantity": 7, "is_active": False}

    def test_missing_required_on_create_only(self):
        with pytest.raises(ValidationError, match="price"):
            _validate({"name": "Conduit"})
        assert _validate({"name": "Conduit"}, partial=True) == {"name": "Conduit"}

    def test_field_not_allowed(self):
        with pytest.raises(ValidationError, match="Field not allowed: id"):
            _validate({"id": "x"}, partial=True)

    @pytest.mark.parametrize("qty", [2.5, "1e3", "2.0", True])
    def test_integer_strict(self, qty):
        with pytest.raises(ValidationError):
            _validate({"stock_quantity": qty}, partial=True)

    def test_boolean_strict(self):
        with pytest.raises(ValidationError):
            _validate({"is_active": "maybe"}, partial=True)

    def test_blank_and_null(self):
        with pytest.raises(ValidationError, match="blank"):
            _validate({"name": "   "}, partial=True)
        with pytest.raises(ValidationError, match="null"):
            _validate({"name": None}, partial=True)

    def test_max_length(self):
        with pytest.raises(ValidationError, match="max length"):
            _validate({"name": "x" * 256}, partial=True)

    def test_nullable_text_accepts_none(self):
        policy = ModelValidationPolicy(writable_fields={"address_line2"})
        patch = validate_payload(model=Address, payload={"address_line2": None}, policy=policy, partial=True)
        assert patch == {"address_line2": None}


class TestTableRules:

    def test_product_price_bounds(self):
        with pytest.raises(ValidationError):
            enforce_rules_product({"price": -1.0})
        with pytest.raises(ValidationError):
            enforce_rules_product({"price": 100_000_000.0})
        enforce_rules_product({"price": 0.0, "stock_quantity": 0})

    def test_inquiry(self):
        with pytest.raises(ValidationError, match="user_type"):
            enforce_rules_inquiry({"user_type": "reseller"})
        with pytest.raises(ValidationError, match="email"):
            enforce_rules_inquiry({"email": "not-an-email"})

    @pytest.mark.parametrize("pincode", ["41100", "4110011", "41100a", ""])
    def test_pincode(self, pincode):
        with pytest.raises(ValidationError):
            enforce_rules_address({"pincode": pincode})

    def test_pincode_ok(self):
        enforce_rules_address({"pincode": "411001"})
        enforce_rules_address({"city": "Pune"})
