"""Tests for DeciderConfig."""

from __future__ import annotations

import pytest

from ngac.config import DeciderConfig
from ngac.exceptions import InvalidArgumentError
from ngac.operations import ADMIN_OPERATIONS


class TestDeciderConfig:
    """Test DeciderConfig defaults, validation and coercion."""

    def test_defaults(self):
        config = DeciderConfig()
        assert config.max_workers == 1
        assert config.max_depth is None
        assert config.require_policy_class is False
        assert config.admin_operations == ADMIN_OPERATIONS

    def test_admin_operations_frozen(self):
        config = DeciderConfig(admin_operations={"approve"})
        assert config.admin_operations == frozenset({"approve"})

    @pytest.mark.parametrize("kwargs", [
        {"max_workers": 0},
        {"max_depth": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidArgumentError):
            DeciderConfig(**kwargs)

    def test_from_dict(self):
        config = DeciderConfig.from_dict({"max_workers": 4, "require_policy_class": True})
        assert config.max_workers == 4
        assert config.require_policy_class is True

    def test_from_dict_unknown_key(self):
        with pytest.raises(InvalidArgumentError, match="unknown keys"):
            DeciderConfig.from_dict({"workers": 4})

    def test_coerce(self):
        config = DeciderConfig(max_workers=2)
        assert DeciderConfig.coerce(config) is config
        assert DeciderConfig.coerce(None) == DeciderConfig()
        assert DeciderConfig.coerce({"max_depth": 5}).max_depth == 5
