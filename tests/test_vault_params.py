"""Tests for VaultParameterBuilder / OperationParams."""

import pytest

from conftest import FakePrompt
from vaultbridge.errors import ConfigError, PromptError
from vaultbridge.vault.cache import MasterKeyCache
from vaultbridge.vault.params import VaultParameterBuilder
from vaultbridge.vault.resolver import MasterKeyResolver


@pytest.fixture
def builder():
    return VaultParameterBuilder(MasterKeyResolver(MasterKeyCache(), FakePrompt("pw")))


class TestVaultParameterBuilder:

    def test_sets_profile_and_key(self, builder):
        params = builder.build("personal", {"path": "/tmp/p.db"})
        assert params.database_profile == "personal"
        assert params.master_key.get_secret_value() == "pw"
        assert params.group_path is None

    def test_copies_default_group(self, builder):
        params = builder.build(
            "personal", {"path": "/tmp/p.db", "defaultEntryGroupPath": "Database/Web"}
        )
        assert params.group_path == "Database/Web"

    def test_does_not_check_database_exists(self, builder):
        params = builder.build("personal", {"path": "/nonexistent/p.db"})
        assert params.database_profile == "personal"

    def test_resolver_failures_propagate(self):
        builder = VaultParameterBuilder(MasterKeyResolver(MasterKeyCache(), FakePrompt(None)))
        with pytest.raises(PromptError):
            builder.build("personal", {"path": "/tmp/p.db"})

    def test_delegation_pair_checked(self, builder):
        with pytest.raises(ConfigError):
            builder.build("team", {"masterKeyVault": "personal"})


class TestOperationParams:

    def test_engine_kwargs_include_group_only_when_set(self, builder):
        params = builder.build("personal", {"defaultEntryGroupPath": "Database/Web"})
        kwargs = params.engine_kwargs()
        assert kwargs["database_profile"] == "personal"
        assert kwargs["master_key"] is params.master_key
        assert kwargs["group_path"] == "Database/Web"

        assert "group_path" not in params.without_group().engine_kwargs()

    def test_without_group_keeps_key(self, builder):
        params = builder.build("personal", {"defaultEntryGroupPath": "Database/Web"})
        stripped = params.without_group()
        assert stripped.group_path is None
        assert stripped.master_key is params.master_key
        assert params.group_path == "Database/Web"
