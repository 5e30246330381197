"""Tests for hitch.core.errors: hierarchy, categories and serialization."""

from __future__ import annotations

import pytest

from hitch.core.errors import (
    ConfigError,
    ContainerNotReadyError,
    ErrorCategory,
    GatewayError,
    HitchError,
    MissingGatewayConfigError,
)


class TestHitchError:
    def test_default_category(self):
        assert HitchError("boom").category is ErrorCategory.INTERNAL

    def test_explicit_category(self):
        err = HitchError("boom", category=ErrorCategory.DATABASE)
        assert err.category is ErrorCategory.DATABASE

    def test_message_is_str(self):
        assert str(HitchError("boom")) == "boom"

    def test_cause_is_chained(self):
        cause = ValueError("bad")
        err = HitchError("boom", cause=cause)
        assert err.cause is cause
        assert err.__cause__ is cause

    def test_with_context_is_fluent(self):
        err = HitchError("boom", context={"a": 1})
        assert err.with_context(b=2) is err
        assert err.context == {"a": 1, "b": 2}

    def test_context_is_copied(self):
        ctx = {"a": 1}
        err = HitchError("boom", context=ctx)
        ctx["b"] = 2
        assert err.context == {"a": 1}

    def test_to_dict_minimal(self):
        assert HitchError("boom").to_dict() == {
            "error_type": "HitchError",
            "message": "boom",
            "category": "INTERNAL",
        }

    def test_to_dict_with_context_and_cause(self):
        d = ConfigError("bad", context={"gateway": "x"}, cause=KeyError("k")).to_dict()
        assert d["error_type"] == "ConfigError"
        assert d["category"] == "CONFIG"
        assert d["context"] == {"gateway": "x"}
        assert "k" in d["cause"]

    def test_repr(self):
        assert repr(ConfigError("bad")) == "ConfigError('bad', category=CONFIG)"


class TestSubclasses:
    @pytest.mark.parametrize(
        "cls, category",
        [
            (ConfigError, ErrorCategory.CONFIG),
            (GatewayError, ErrorCategory.DATABASE),
            (ContainerNotReadyError, ErrorCategory.INTERNAL),
        ],
    )
    def test_categories(self, cls, category):
        err = cls() if cls is ContainerNotReadyError else cls("x")
        assert err.category is category
        assert isinstance(err, HitchError)

    def test_container_not_ready_default_message(self):
        assert "reload" in ContainerNotReadyError().message


class TestMissingGatewayConfigError:
    def test_is_config_error(self):
        assert isinstance(MissingGatewayConfigError({"users": "x"}), ConfigError)

    def test_message_lists_gateways_sorted_once(self):
        err = MissingGatewayConfigError({"users": "search", "tags": "analytics", "posts": "search"})
        assert err.message == "Gateway(s) not configured: analytics, search"
        assert err.gateway_names == ["analytics", "search"]

    def test_context_keeps_relations(self):
        err = MissingGatewayConfigError([("users", "search")])
        assert err.missing == {"users": "search"}
        assert err.context == {"relations": {"users": "search"}}

    def test_custom_message(self):
        assert MissingGatewayConfigError({"a": "b"}, message="nope").message == "nope"
