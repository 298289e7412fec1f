"""
import_export.py — Move entries in and out of the store as TOML or JSON.

TOML (default) is an array of tables:

    [[entries]]
    name = "github"
    secret = "JBSWY3DPEHPK3PXP"
    digits = 6
    period = 30

JSON is a plain array of the same objects:

    [{"name": "github", "secret": "JBSWY3DPEHPK3PXP", "digits": 6, "period": 30}, ...]

"digits" and "period" are optional (6 / 30). An "id" key is written on
export for reference and ignored on import; the store assigns new ids.
"""

import json
import logging
import tomllib
from pathlib import Path
from typing import List, Union

import tomli_w

from core.entries import NewEntry
from core.errors import EntryNotFound, ValidationError
from core.otp_core import DEFAULT_DIGITS, DEFAULT_PERIOD
from core.validation import ensure_valid

logger = logging.getLogger(__name__)

FORMAT_TOML = "toml"
FORMAT_JSON = "json"
SUPPORTED_FORMATS = (FORMAT_TOML, FORMAT_JSON)
DEFAULT_FORMAT = FORMAT_TOML


def normalize_format(fmt: str) -> str:
    """Lowercase `fmt` and check it is a supported file format."""
    value = (fmt or DEFAULT_FORMAT).lower()
    if value not in SUPPORTED_FORMATS:
        raise ValidationError(
            f"Unsupported format: {fmt} (supported formats: {', '.join(SUPPORTED_FORMATS)})"
        )
    return value


def _parse_record(index: int, record) -> NewEntry:
    if not isinstance(record, dict):
        raise ValidationError(f"Record {index}: expected an object")
    name = record.get("name")
    secret = record.get("secret")
    if not isinstance(name, str) or not name:
        raise ValidationError(f"Record {index}: 'name' is required")
    if not isinstance(secret, str):
        raise ValidationError(f"Record {index}: 'secret' is required")

    digits = record.get("digits", DEFAULT_DIGITS)
    period = record.get("period", DEFAULT_PERIOD)
    if not isinstance(digits, int) or isinstance(digits, bool):
        raise ValidationError(f"Record {index}: 'digits' must be an integer")
    if not isinstance(period, int) or isinstance(period, bool):
        raise ValidationError(f"Record {index}: 'period' must be an integer")

    try:
        ensure_valid(secret=secret, digits=digits, period=period)
    except ValidationError as e:
        raise ValidationError(f"Record {index} ({name}): {e.reason}") from e
    return NewEntry(name=name, secret=secret, digits=digits, period=period)


def _load_records(path: Union[str, Path], fmt: str) -> list:
    if fmt == FORMAT_TOML:
        with open(path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValidationError(f"Invalid TOML in {path}: {e}") from e
        records = data.get("entries", [])
        if not isinstance(records, list):
            raise ValidationError(f"{path}: expected an [[entries]] array of tables")
        return records

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, list):
        raise ValidationError(f"{path}: expected a JSON array of entries")
    return data


def read_entries(path: Union[str, Path], fmt: str = DEFAULT_FORMAT) -> List[NewEntry]:
    """
    Parse and validate an export file. Nothing is returned unless every
    record is valid.

    Raises:
        ValidationError: unsupported format, undecodable or malformed file,
            or an invalid record
        OSError: the file cannot be read
    """
    fmt = normalize_format(fmt)
    try:
        records = _load_records(path, fmt)
    except UnicodeDecodeError as e:
        raise ValidationError(f"{path} is not valid UTF-8: {e.reason}") from e
    return [_parse_record(i, record) for i, record in enumerate(records, start=1)]


def import_entries(path: Union[str, Path], store, fmt: str = DEFAULT_FORMAT) -> list:
    """Validate the whole file, then add every record to `store`. Returns the SaveResults."""
    records = read_entries(path, fmt)
    results = [store.add(r.name, r.secret, r.digits, r.period) for r in records]
    logger.info("Imported %d entries from %s", len(results), path)
    return results


def export_entries(path: Union[str, Path], store, fmt: str = DEFAULT_FORMAT) -> int:
    """
    Write every entry, with its secret, to `path`. Returns the count.

    Raises:
        ValidationError: unsupported format
        EntryNotFound: the store is empty
        SecretStorageFailed / SecretUnavailable: a secret cannot be produced
    """
    fmt = normalize_format(fmt)
    entries = store.list_entries()
    if not entries:
        raise EntryNotFound("*", "No entries to export")

    records = [
        {
            "id": entry.id,
            "name": entry.name,
            "secret": store.secret_for(entry),
            "digits": entry.digits,
            "period": entry.period,
        }
        for entry in entries
    ]

    if fmt == FORMAT_TOML:
        with open(path, "wb") as f:
            tomli_w.dump({"entries": records}, f)
    else:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2)
            f.write("\n")
    logger.info("Exported %d entries to %s as %s", len(records), path, fmt)
    return len(records)
