"""
Tests for typed endpoint parameters.
"""

import pytest

from connectors.registry import ConnectorRegistry
from endpoints.parameters import (
    ConnectorSlugParameter,
    IntegerParameter,
    StringParameter,
)


class TestRequiredHandling:
    def test_required_absent_fails(self):
        assert not StringParameter("code", is_required=True).validate(None)

    def test_optional_absent_passes_and_parses_to_none(self):
        param = IntegerParameter("page")
        assert param.validate(None)
        assert param.parse(None) is None

    def test_failure_reasons(self):
        param = IntegerParameter("page", is_required=True)
        assert "required" in param.failure_reason(None)
        assert "integer" in param.failure_reason("abc")

    def test_parameters_are_read_only(self):
        param = StringParameter("state", is_required=True)
        with pytest.raises(AttributeError):
            param.name = "other"
        with pytest.raises(AttributeError):
            param.is_required = False


class TestIntegerParameter:
    def setup_method(self):
        self.param = IntegerParameter("count", is_required=True)

    @pytest.mark.parametrize(
        "raw, expected",
        [("42", 42), ("-3", -3), (" 12 ", 12), ("4.7", 4), ("-4.7", -4), ("1e3", 1000), (7, 7), (2.9, 2)],
    )
    def test_accepts_numeric(self, raw, expected):
        assert self.param.validate(raw)
        assert self.param.parse(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", "4x", "0x1A", "nan", "inf", "1e999", True, [1], float("inf")])
    def test_rejects_non_numeric(self, raw):
        assert not self.param.validate(raw)


class TestStringParameter:
    def test_accepts_any_present_value(self):
        param = StringParameter("state")
        assert param.validate("abc")
        assert param.validate("")
        assert param.parse("abc") == "abc"

    def test_scalars_parse_to_string(self):
        assert StringParameter("n").parse(5) == "5"

    def test_rejects_structured_values(self):
        param = StringParameter("state")
        assert not param.validate({"a": 1})
        assert not param.validate(["a"])


class TestConnectorSlugParameter:
    def test_registered_slug_is_valid(self, fake_connector):
        param = ConnectorSlugParameter("slug", is_required=True)
        assert param.validate("fake")
        assert param.parse("fake") == "fake"

    def test_unknown_slug_is_invalid(self, fake_connector):
        param = ConnectorSlugParameter("slug", is_required=True)
        assert not param.validate("myspace")

    def test_uses_explicit_registry(self, fake_connector):
        registry = ConnectorRegistry()
        param = ConnectorSlugParameter("slug", registry=registry)
        ConnectorRegistry.reset()
        # the detached registry still knows the connector
        assert param.validate("fake")
        assert not ConnectorSlugParameter("slug").validate("fake")
