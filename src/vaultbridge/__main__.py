# Main Entry Point - Command Line Host
#
# Minimal host for the adapter: vault registrations come from the
# registry file (settings.registry_file), master keys are prompted on
# the terminal or read from a delegate vault.
#
#   vaultbridge init ~/vaults/personal.db
#   vaultbridge register personal --path ~/vaults/personal.db
#   vaultbridge test personal
#   vaultbridge set personal github --username me
#   vaultbridge get personal github
#   vaultbridge list personal --filter 'git*'
#   vaultbridge remove personal github

import argparse
import getpass
import sys
from typing import List, Optional

from . import __version__
from .adapter import VaultAdapter
from .core import EventSeverity, EventType, get_audit_logger, get_settings
from .errors import ConfigError, PromptError, VaultBridgeError
from .models import (
    PARAM_DEFAULT_GROUP,
    PARAM_MASTER_KEY_SECRET,
    PARAM_MASTER_KEY_VAULT,
    PARAM_PATH,
    Credential,
    MasterKey,
    SecureString,
)
from .registry import VaultRegistry


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vaultbridge",
        description="Read and write secrets in password-database vaults",
    )
    parser.add_argument(
        "--version", action="version", version=f"vaultbridge v{__version__}"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create a new vault database")
    p.add_argument("path", help="Database file to create")
    p.add_argument("--root-group", default="Database", help="Root group name")

    p = sub.add_parser("register", help="Register a vault in the registry file")
    p.add_argument("vault")
    p.add_argument("--path", required=True, help="Database file")
    p.add_argument("--group", help="Default group path for new entries")
    p.add_argument("--master-key-vault", help="Vault holding this vault's master key")
    p.add_argument("--master-key-secret", help="Secret name of the master key")

    p = sub.add_parser("test", help="Validate a vault (registers it on first run)")
    p.add_argument("vault")

    p = sub.add_parser("get", help="Print a secret")
    p.add_argument("vault")
    p.add_argument("name")

    p = sub.add_parser("set", help="Create or update a secret (value read from prompt)")
    p.add_argument("vault")
    p.add_argument("name")
    p.add_argument("--username", help="Store as a credential with this username")

    p = sub.add_parser("remove", help="Delete a secret")
    p.add_argument("vault")
    p.add_argument("name")

    p = sub.add_parser("list", help="List secret names")
    p.add_argument("vault")
    p.add_argument("--filter", default="*", help="Glob on secret names")

    return parser


def _load(adapter: VaultAdapter) -> VaultRegistry:
    """Load registrations from the registry file into the adapter."""
    loaded = VaultRegistry.from_file(get_settings().registry_file, adapter)
    for name in loaded.names():
        adapter.register_vault(name, loaded.get(name).parameters)
    return adapter.registry


def _params(registry: VaultRegistry, vault: str) -> dict:
    if vault not in registry:
        raise ConfigError(
            f"Vault '{vault}' is not in {get_settings().registry_file}; "
            "run 'vaultbridge register' first"
        )
    return registry.get(vault).parameters


def _read_new_secret(label: str) -> str:
    first = getpass.getpass(f"{label}: ")
    second = getpass.getpass(f"{label} (again): ")
    if first != second:
        raise PromptError("Entries did not match")
    if not first:
        raise PromptError("Nothing was entered")
    return first


def run(args: argparse.Namespace, adapter: VaultAdapter) -> int:
    settings = get_settings()

    if args.command == "init":
        from .engine.sqlite_engine import SqliteEngine

        engine = adapter.engine
        if not isinstance(engine, SqliteEngine):
            raise ConfigError("init is only supported by the bundled SQLite engine")
        key = MasterKey(SecureString(_read_new_secret("New master password")))
        path = engine.create_database(args.path, key, root_group=args.root_group)
        get_audit_logger().log_event(
            event_type=EventType.VAULT_CREATED,
            severity=EventSeverity.INFO,
            message=f"Vault database created: {path}",
        )
        print(f"Created {path}")
        return 0

    registry = _load(adapter)

    if args.command == "register":
        parameters = {PARAM_PATH: args.path}
        if args.group:
            parameters[PARAM_DEFAULT_GROUP] = args.group
        if args.master_key_vault:
            parameters[PARAM_MASTER_KEY_VAULT] = args.master_key_vault
        if args.master_key_secret:
            parameters[PARAM_MASTER_KEY_SECRET] = args.master_key_secret
        adapter.register_vault(args.vault, parameters)
        registry.save(settings.registry_file)
        print(f"Registered vault '{args.vault}' in {settings.registry_file}")
        return 0

    params = _params(registry, args.vault)

    if args.command == "test":
        adapter.test_secret_vault(args.vault, params)
        print(f"Vault '{args.vault}' OK")
    elif args.command == "get":
        secret = adapter.get_secret(args.name, args.vault, params)
        if isinstance(secret, Credential):
            print(f"username: {secret.username}")
            print(f"password: {secret.password.get_secret_value()}")
        else:
            print(secret.get_secret_value())
    elif args.command == "set":
        value = _read_new_secret(f"Secret for '{args.name}'")
        secret = Credential(args.username, value) if args.username else SecureString(value)
        adapter.set_secret(args.name, secret, args.vault, params)
        print(f"Stored '{args.name}' in vault '{args.vault}'")
    elif args.command == "remove":
        adapter.remove_secret(args.name, args.vault, params)
        print(f"Removed '{args.name}' from vault '{args.vault}'")
    elif args.command == "list":
        for info in adapter.get_secret_info(args.filter, args.vault, params):
            print(info.name)
    return 0


def main(argv: Optional[List[str]] = None, adapter: Optional[VaultAdapter] = None) -> int:
    """Entry point for ``vaultbridge`` / ``python -m vaultbridge``."""
    args = build_parser().parse_args(argv)
    try:
        return run(args, adapter or VaultAdapter())
    except VaultBridgeError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
