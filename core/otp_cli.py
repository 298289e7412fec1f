#!/usr/bin/env python3
"""
otp_cli.py — `auth` command line front end for the entry store.

Subcommands:
- add      : add an entry (name, secret, [digits], [period])
- list     : list every entry with its current code
- generate : print the current code of one entry
- remove   : remove an entry (and its secret in the keyring)
- info     : show the details of one entry
- edit     : change name / secret / digits / period of an entry
- import   : add entries from a TOML or JSON file
- export   : write every entry to a TOML or JSON file
- wipe     : remove every entry and the database file
- version  : print the version

Entries are addressed by id, by their # in `auth list`, or by name.

Usage examples:
  auth add github JBSWY3DPEHPK3PXP
  auth add bank "abcd efgh ijkl mnop" 8 60
  auth list
  auth generate 2
  auth edit github --name github-work --digits 8
  AUTH_DATABASE_DIR=/tmp/auth auth export backup.toml
  auth import backup.json json
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import core
from core.config import AuthConfig, load_config
from core.errors import AuthError
from core.import_export import DEFAULT_FORMAT, SUPPORTED_FORMATS, export_entries, import_entries
from database.entry_store import SecretBackedEntryStore
from database.secret_storage import KeyringSecretStorage

MAX_NAME_DISPLAY_LENGTH = 40
MAX_SECRET_DISPLAY_LENGTH = 40
FORMAT_HELP = f"File format: {' or '.join(SUPPORTED_FORMATS)} (default: {DEFAULT_FORMAT})"


def log(msg: str, verbose: bool):
    if verbose:
        print(f"[+] {msg}")


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."


def open_store(config: AuthConfig) -> SecretBackedEntryStore:
    secret_storage = KeyringSecretStorage(config.keyring_service) if config.use_secret_storage else None
    return SecretBackedEntryStore.open(config.database_path, secret_storage)


def _report_warnings(warnings) -> None:
    for warning in warnings:
        print(f"[!] Warning: {warning}", file=sys.stderr)


# --- CLI command handlers ---
def cmd_add(args, store: SecretBackedEntryStore) -> int:
    result = store.add(args.name, args.secret, args.digits, args.period)
    entry = result.entry
    _report_warnings(result.warnings)
    log(f"Assigned id {entry.id}", args.verbose)
    print(f"Added new entry: {truncate(entry.name, MAX_NAME_DISPLAY_LENGTH)}")
    return 0


def cmd_list(args, store: SecretBackedEntryStore) -> int:
    rows = store.list_codes()
    if not rows:
        print("No entries found")
        return 0

    names = [truncate(row.entry.name, MAX_NAME_DISPLAY_LENGTH) for row in rows]
    width = max(len(name) for name in names) + 2
    print(f"{'#':<5}{'NAME':<{width}}{'CODE':<9}EXPIRES")
    for row, name in zip(rows, names):
        print(f"{row.ordinal:<5}{name:<{width}}{row.code:<9}{row.remaining}s")
    return 0


def cmd_generate(args, store: SecretBackedEntryStore) -> int:
    print(store.generate(args.entry))
    return 0


def cmd_remove(args, store: SecretBackedEntryStore) -> int:
    result = store.remove(args.entry)
    _report_warnings(result.warnings)
    if not result.removed:
        print("[!] Failed to remove entry", file=sys.stderr)
        return 1
    print(f"Removed entry: {truncate(result.entry.name, MAX_NAME_DISPLAY_LENGTH)}")
    return 0


def cmd_info(args, store: SecretBackedEntryStore) -> int:
    info = store.info(args.entry)
    entry = info.entry
    print(f"Name:   {truncate(entry.name, MAX_NAME_DISPLAY_LENGTH)}")
    print(f"ID:     {entry.id}")
    print(f"Secret: {truncate(info.secret, MAX_SECRET_DISPLAY_LENGTH)}")
    print(f"Digits: {entry.digits}")
    print(f"Period: {entry.period}s")
    print(f"Code:   {info.code} (expires in {info.remaining}s)")
    return 0


def cmd_edit(args, store: SecretBackedEntryStore) -> int:
    original = store.resolve(args.entry)
    result = store.edit(args.entry, name=args.name, secret=args.secret, digits=args.digits, period=args.period)
    _report_warnings(result.warnings)
    print(f"Updated entry: {truncate(original.name, MAX_NAME_DISPLAY_LENGTH)}")
    return 0


def cmd_import(args, store: SecretBackedEntryStore) -> int:
    results = import_entries(args.file, store, args.format)
    for result in results:
        _report_warnings(result.warnings)
    log(f"Imported ids: {', '.join(str(r.entry.id) for r in results)}", args.verbose)
    print(f"Successfully imported {len(results)} entries from {args.file}")
    return 0


def cmd_export(args, store: SecretBackedEntryStore) -> int:
    count = export_entries(args.file, store, args.format)
    print(f"Successfully exported {count} entries to {args.file}")
    return 0


def cmd_wipe(args, store: SecretBackedEntryStore) -> int:
    result = store.wipe()
    _report_warnings(result.warnings)
    log(f"Removed {result.removed_count} entries", args.verbose)
    print("Database wiped successfully")
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="auth", description="TOTP authenticator with a local entry store")
    p.add_argument("--db", help="Path to the database file (default: $AUTH_DATABASE_DIR/auth.db)")
    p.add_argument("--no-keyring", action="store_true", help="Keep secrets in the database, not the keyring")
    p.add_argument("--verbose", action="store_true", help="Verbose output")
    sub = p.add_subparsers(dest="cmd")

    # add
    pa = sub.add_parser("add", help="Add a new TOTP entry")
    pa.add_argument("name", help="Display name")
    pa.add_argument("secret", help="Base32 secret (spaces and dashes allowed)")
    pa.add_argument("digits", type=int, nargs="?", default=None, help="Number of digits (default: 6)")
    pa.add_argument("period", type=int, nargs="?", default=None, help="Time period in seconds (default: 30)")
    pa.set_defaults(func=cmd_add)

    # list
    pl = sub.add_parser("list", help="List all entries with their current codes")
    pl.set_defaults(func=cmd_list)

    # generate / remove / info
    for name, func, help_text in (
        ("generate", cmd_generate, "Generate the TOTP code for an entry"),
        ("remove", cmd_remove, "Remove an entry"),
        ("info", cmd_info, "Show details for an entry"),
    ):
        ps = sub.add_parser(name, help=help_text)
        ps.add_argument("entry", help="Entry id, # from `auth list`, or name")
        ps.set_defaults(func=func)

    # edit
    pe = sub.add_parser("edit", help="Edit an entry")
    pe.add_argument("entry", help="Entry id, # from `auth list`, or name")
    pe.add_argument("--name", help="New name")
    pe.add_argument("--secret", help="New Base32 secret")
    pe.add_argument("--digits", type=int, help="New number of digits")
    pe.add_argument("--period", type=int, help="New period (seconds)")
    pe.set_defaults(func=cmd_edit)

    # import / export
    pi = sub.add_parser("import", help="Import entries from a TOML or JSON file")
    pi.add_argument("file")
    pi.add_argument("format", nargs="?", default=DEFAULT_FORMAT, help=FORMAT_HELP)
    pi.set_defaults(func=cmd_import)

    px = sub.add_parser("export", help="Export entries to a TOML or JSON file")
    px.add_argument("file")
    px.add_argument("format", nargs="?", default=DEFAULT_FORMAT, help=FORMAT_HELP)
    px.set_defaults(func=cmd_export)

    # wipe
    pw = sub.add_parser("wipe", help="Remove every entry and the database")
    pw.set_defaults(func=cmd_wipe)

    # version
    sub.add_parser("version", help="Show the version")

    return p


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.cmd == "version":
        print(f"auth {core.__version__}")
        return 0
    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    overrides = {}
    if args.db:
        overrides["database_path"] = Path(args.db)
    if args.no_keyring:
        overrides["use_secret_storage"] = False
    config = replace(load_config(), **overrides)

    if args.cmd == "add":
        if args.digits is None:
            args.digits = config.default_digits
        if args.period is None:
            args.period = config.default_period

    log(f"Database: {config.database_path}", args.verbose)
    try:
        store = open_store(config)
        return args.func(args, store)
    except AuthError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"[!] {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
