"""Tests for the adapter data model.

Covers:
  - SecureString masking and equality
  - Credential password wrapping
  - Secret shape normalisation (three shapes + rejection)
  - MasterKey construction from secret shapes
  - VaultConfig parsing and delegation pairing
"""

import pytest

from vaultbridge.errors import ConfigError, UnsupportedTypeError
from vaultbridge.models import (
    Credential,
    MasterKey,
    SecretInfo,
    SecretKind,
    SecretType,
    SecureString,
    VaultConfig,
    coerce_secret,
)


class TestSecureString:

    def test_value_hidden_from_repr_and_str(self):
        s = SecureString("hunter2")
        assert "hunter2" not in repr(s)
        assert "hunter2" not in str(s)
        assert s.get_secret_value() == "hunter2"

    def test_equality_by_value(self):
        assert SecureString("a") == SecureString("a")
        assert SecureString("a") != SecureString("b")

    def test_not_equal_to_plain_str(self):
        assert SecureString("a") != "a"

    def test_rejects_non_str(self):
        with pytest.raises(TypeError):
            SecureString(b"bytes")

    def test_empty_is_falsy(self):
        assert not SecureString("")
        assert SecureString("x")


class TestCredential:

    def test_str_password_is_wrapped(self):
        cred = Credential("alice", "pw")
        assert isinstance(cred.password, SecureString)
        assert cred.password.get_secret_value() == "pw"

    def test_repr_masks_password(self):
        assert "pw123" not in repr(Credential("alice", "pw123"))


class TestCoerceSecret:

    def test_plain_string(self):
        payload = coerce_secret("pw")
        assert payload.kind is SecretKind.STRING
        assert payload.password == SecureString("pw")
        assert payload.username is None
        assert payload.carries_username is False

    def test_secure_string(self):
        payload = coerce_secret(SecureString("pw"))
        assert payload.kind is SecretKind.SECURE_STRING
        assert payload.password == SecureString("pw")
        assert payload.carries_username is False

    def test_credential(self):
        payload = coerce_secret(Credential("bob", "pw"))
        assert payload.kind is SecretKind.CREDENTIAL
        assert payload.username == "bob"
        assert payload.password == SecureString("pw")
        assert payload.carries_username is True

    @pytest.mark.parametrize("value", [42, b"pw", None, {"user": "x"}, ["pw"]])
    def test_other_shapes_rejected(self, value):
        with pytest.raises(UnsupportedTypeError):
            coerce_secret(value)

    def test_unsupported_is_also_a_type_error(self):
        with pytest.raises(TypeError):
            coerce_secret(3.14)


class TestMasterKey:

    def test_from_each_shape(self):
        assert MasterKey.from_secret("k").get_secret_value() == "k"
        assert MasterKey.from_secret(SecureString("k")).get_secret_value() == "k"
        assert MasterKey.from_secret(Credential("MasterPassword", "k")).get_secret_value() == "k"

    def test_from_master_key_is_identity(self):
        key = MasterKey(SecureString("k"))
        assert MasterKey.from_secret(key) is key

    def test_unknown_shape_gives_none(self):
        assert MasterKey.from_secret(123) is None
        assert MasterKey.from_secret(None) is None

    def test_repr_masked(self):
        assert "topsecret" not in repr(MasterKey(SecureString("topsecret")))


class TestVaultConfig:

    def test_from_parameters(self):
        config = VaultConfig.from_parameters(
            "team",
            {
                "path": "/srv/team.db",
                "defaultEntryGroupPath": "Database/Web",
                "masterKeyVault": "personal",
                "masterKeySecretName": "team-db",
            },
        )
        assert config.vault_name == "team"
        assert config.database_path == "/srv/team.db"
        assert config.default_entry_group_path == "Database/Web"
        assert config.master_key_vault_name == "personal"
        assert config.master_key_secret_name == "team-db"
        assert config.uses_delegation is True

    def test_blank_values_become_none(self):
        config = VaultConfig.from_parameters("v", {"path": "  ", "masterKeyVault": ""})
        assert config.database_path is None
        assert config.uses_delegation is False

    def test_none_parameters(self):
        config = VaultConfig.from_parameters("v", None)
        assert config.database_path is None

    def test_delegate_without_secret_name_rejected(self):
        config = VaultConfig.from_parameters("team", {"masterKeyVault": "personal"})
        with pytest.raises(ConfigError, match="masterKeySecretName"):
            config.require_delegation_pair()

    def test_complete_pair_accepted(self):
        config = VaultConfig.from_parameters(
            "team", {"masterKeyVault": "personal", "masterKeySecretName": "k"}
        )
        config.require_delegation_pair()


class TestSecretInfo:

    def test_to_dict(self):
        info = SecretInfo(name="github", type=SecretType.CREDENTIAL, vault_name="personal")
        assert info.to_dict() == {
            "name": "github",
            "type": "credential",
            "vault_name": "personal",
        }
