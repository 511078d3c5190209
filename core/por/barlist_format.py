"""
Bar List Formatter

Normalizes custodian bar exports (CSV, TSV or JSON) into a schema 0.1
ReserveList document:
- header alias matching and delimiter auto-detection for delimited text
- integer gram parsing ("1,000", "1 000", "1000.0" accepted; "1000.5" not)
- fineness normalization ("9999" -> "999.9", missing -> "999.9")
- allocation_status must be "allocated"
- duplicate serial rejection, canonical sort, computed totals
"""

from __future__ import annotations

import csv
import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal, Mapping

from core.schemas.canonical import is_valid_fineness
from core.schemas.errors import ErrorCodes, FormatError, ValidationError
from core.schemas.reserves import Auditor, Custodian, ReserveList, ReserveUnit, Totals, Vault
from core.schemas.versioning import SCHEMA_VERSION
from core.por.reserve_commitment import canonical_sort_units

logger = logging.getLogger(__name__)

InputFormat = Literal["csv", "tsv", "json"]

DEFAULT_FINENESS = "999.9"

# Column aliases, matched after normalize_header_key()
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "serial_no": ("serial_no", "serial", "serialnumber", "serialno"),
    "refiner": ("refiner", "refinery", "brand", "manufacturer"),
    "fine_weight_g": ("fine_weight_g", "fineg", "fineweight", "fineweightg", "finegrams"),
    "vault_id": ("vault_id", "vault", "vaultid", "storage", "storageid", "vaultcode"),
    "gross_weight_g": ("gross_weight_g", "grossweightg", "grossweight", "grossg", "grossgrams"),
    "fineness": ("fineness", "purity"),
    "allocation_status": ("allocation_status", "allocationstatus", "status"),
    "bar_id": ("bar_id", "barid", "id"),
    "location_code": ("location_code", "locationcode", "branch", "branchcode"),
    "assay_reference": ("assay_reference", "assayreference", "assay", "certificate"),
    "notes": ("notes", "note", "comment", "remarks"),
}

REQUIRED_COLUMNS: tuple[str, ...] = ("serial_no", "refiner", "fine_weight_g", "vault_id")
OPTIONAL_TEXT_FIELDS: tuple[str, ...] = ("bar_id", "location_code", "assay_reference", "notes")

_THOUSANDS_RE = re.compile(r"\d{1,3}(,\d{3})+")
_DECIMAL_RE = re.compile(r"(\d+)\.(\d+)")
_DIGITS_RE = re.compile(r"\d+")
_FOUR_DIGITS_RE = re.compile(r"\d{4}")


@dataclass
class FormatOptions:
    """Report-level metadata supplied alongside the bar export."""
    custodian_name: str
    custodian_location: str
    report_id: str | None = None
    as_of_timestamp: int | None = None
    auditor_name: str | None = None
    auditor_ref: str | None = None
    delimiter: str | None = None
    emit_vaults: bool = False


# =============================================================================
# Value Parsing
# =============================================================================

def normalize_header_key(header: str) -> str:
    """Lowercase and strip whitespace, dashes, underscores and dots."""
    return re.sub(r"[\s\-_.]", "", header.strip().lower())


def pick_delimiter(header_line: str) -> str:
    """Most frequent of comma, semicolon or tab in the header; comma if none."""
    counts = [(d, header_line.count(d)) for d in (",", ";", "\t")]
    best, count = max(counts, key=lambda item: item[1])
    return best if count > 0 else ","


def parse_integer_grams(value: Any, label: str, *, minimum: int = 1) -> int:
    """
    Parse integer grams from a JSON number or a text cell.

    Raises:
        ValidationError: If the value is not a whole number >= minimum.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be integer grams, got boolean", field_path=label, value=value)

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not (math.isfinite(value) and value.is_integer()):
            raise ValidationError(f"{label} must be integer grams, got {value!r}", field_path=label)
        number = int(value)
    elif isinstance(value, str):
        text = re.sub(r"[\s_']", "", value.strip())
        if not text:
            raise ValidationError(f"{label} is empty", field_path=label)
        if _THOUSANDS_RE.fullmatch(text):
            number = int(text.replace(",", ""))
        elif _DECIMAL_RE.fullmatch(text):
            whole, fraction = _DECIMAL_RE.fullmatch(text).groups()
            if fraction.strip("0"):
                raise ValidationError(
                    f"{label} must be integer grams (no decimals), got {value!r}",
                    field_path=label,
                    value=value,
                )
            number = int(whole)
        elif _DIGITS_RE.fullmatch(text):
            number = int(text)
        else:
            raise ValidationError(f"{label} must be integer grams, got {value!r}", field_path=label, value=value)
    else:
        raise ValidationError(
            f"{label} must be a number or string, got {type(value).__name__}",
            field_path=label,
        )

    if number < minimum:
        raise ValidationError(f"{label} must be >= {minimum}, got {number}", field_path=label, value=number)
    return number


def normalize_fineness(value: Any) -> str:
    """
    Normalize fineness to NNN.N.

    Missing or blank values default to 999.9; "9999" becomes "999.9";
    numbers are formatted with one decimal.
    """
    if value is None:
        return DEFAULT_FINENESS
    if isinstance(value, bool):
        raise ValidationError("fineness must be a string or number", field_path="fineness", value=value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValidationError(f"fineness invalid: {value!r}", field_path="fineness")
        text = f"{value:.1f}"
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return DEFAULT_FINENESS
        if _FOUR_DIGITS_RE.fullmatch(text):
            text = f"{text[:3]}.{text[3:]}"
    else:
        raise ValidationError(f"fineness invalid type: {type(value).__name__}", field_path="fineness")

    if not is_valid_fineness(text):
        raise ValidationError(
            f"fineness must match NNN.N (e.g. 999.9), got {value!r}",
            field_path="fineness",
            value=str(value),
        )
    return text


def _required_text(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string", field_path=label)
    text = value.strip()
    if not text:
        raise ValidationError(f"{label} is empty", field_path=label)
    return text


def _allocation_status(value: Any, label: str) -> str:
    if value is None:
        return "allocated"
    status = value.strip().lower() if isinstance(value, str) else value
    if status in ("", "allocated"):
        return "allocated"
    raise ValidationError(
        f'{label} must be "allocated", got {value!r}',
        field_path=label,
        value=str(value),
    )


# =============================================================================
# Input Readers
# =============================================================================

def parse_delimited_rows(text: str, delimiter: str | None = None) -> list[dict[str, str]]:
    """
    Parse CSV/TSV text into dicts keyed by canonical column names.

    Blank lines are skipped. Unknown columns are dropped.

    Raises:
        FormatError: If a required column is missing or there are no data rows.
    """
    lines = [line.strip() for line in text.splitlines()]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        raise FormatError("CSV must have a header and at least one data line")

    delimiter = delimiter or pick_delimiter(lines[0])
    rows = [[cell.strip() for cell in row] for row in csv.reader(lines, delimiter=delimiter)]
    headers = [normalize_header_key(h) for h in rows[0]]

    columns: dict[str, int] = {}
    for field, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            key = normalize_header_key(alias)
            if key in headers:
                columns[field] = headers.index(key)
                break

    for field in REQUIRED_COLUMNS:
        if field not in columns:
            raise FormatError(f"CSV missing required column: {field}", field_path=field)

    records: list[dict[str, str]] = []
    for row in rows[1:]:
        if len(row) == 1 and row[0] == "":
            continue
        records.append({field: row[i] if i < len(row) else "" for field, i in columns.items()})
    return records


def parse_json_bars(document: Any) -> list[Mapping[str, Any]]:
    """
    Accept either a bare array of bars or an object with a bars array.

    Other top-level metadata in the object is ignored; report metadata
    comes only from FormatOptions.
    """
    if isinstance(document, list):
        return document
    if isinstance(document, dict) and isinstance(document.get("bars"), list):
        return document["bars"]
    raise FormatError("JSON input must be an array of bars or an object with bars[]")


def normalize_bars(raw_bars: list[Mapping[str, Any]]) -> list[ReserveUnit]:
    """
    Validate raw bar records and return canonically sorted units.

    Raises:
        FormatError: If raw_bars is empty or an entry is not an object.
        ValidationError: On a bad value or a duplicate serial_no.
    """
    if not raw_bars:
        raise FormatError("bars[] must be a non-empty array", field_path="bars")

    units: list[ReserveUnit] = []
    seen: set[str] = set()
    for i, raw in enumerate(raw_bars):
        label = f"bars[{i}]"
        if not isinstance(raw, Mapping):
            raise FormatError(f"{label} must be an object", field_path=label)

        fields: dict[str, Any] = {
            "serial_no": _required_text(raw.get("serial_no"), f"{label}.serial_no"),
            "refiner": _required_text(raw.get("refiner"), f"{label}.refiner"),
            "vault_id": _required_text(raw.get("vault_id"), f"{label}.vault_id"),
            "fine_weight_g": parse_integer_grams(raw.get("fine_weight_g"), f"{label}.fine_weight_g"),
            "fineness": normalize_fineness(raw.get("fineness")),
            "allocation_status": _allocation_status(raw.get("allocation_status"), f"{label}.allocation_status"),
        }

        gross = raw.get("gross_weight_g")
        if gross is not None and gross != "":
            fields["gross_weight_g"] = parse_integer_grams(gross, f"{label}.gross_weight_g")
        for name in OPTIONAL_TEXT_FIELDS:
            value = raw.get(name)
            if isinstance(value, str) and value.strip():
                fields[name] = value.strip()

        if fields["serial_no"] in seen:
            raise ValidationError(
                f"Duplicate serial_no in bars[]: {fields['serial_no']}",
                field_path=f"{label}.serial_no",
                value=fields["serial_no"],
                code=ErrorCodes.DUPLICATE_SERIAL,
            )
        seen.add(fields["serial_no"])
        units.append(ReserveUnit(**fields))

    return canonical_sort_units(units)


# =============================================================================
# Formatter
# =============================================================================

def detect_input_format(path: str | Path) -> InputFormat:
    """Input format from the file extension (.csv/.txt, .tsv, .json)."""
    suffix = Path(path).suffix.lower()
    if suffix in (".csv", ".txt"):
        return "csv"
    if suffix == ".tsv":
        return "tsv"
    if suffix == ".json":
        return "json"
    raise FormatError(f"Unsupported input extension: {suffix or '<none>'} (use .csv, .tsv or .json)")


def format_bar_list(
    text: str,
    input_format: InputFormat,
    options: FormatOptions,
    *,
    now: datetime | None = None,
) -> ReserveList:
    """
    Build a ReserveList from a bar export.

    Args:
        text: Raw file contents
        input_format: "csv", "tsv" or "json"
        options: Custodian, report and auditor metadata
        now: Clock override for the default timestamp and report id

    Raises:
        FormatError: On unreadable input
        ValidationError: On invalid bar values or metadata
    """
    custodian_name = (options.custodian_name or "").strip()
    custodian_location = (options.custodian_location or "").strip()
    if not custodian_name or not custodian_location:
        raise ValidationError("custodian name and location are required", field_path="custodian")

    if input_format == "json":
        try:
            document = json.loads(text)
        except json.JSONDecodeError as e:
            raise FormatError(f"Input is not valid JSON: {e.msg} (line {e.lineno})") from e
        raw_bars = parse_json_bars(document)
    else:
        delimiter = options.delimiter or ("\t" if input_format == "tsv" else None)
        raw_bars = parse_delimited_rows(text, delimiter)

    units = normalize_bars(raw_bars)

    now = now or datetime.now(timezone.utc)
    if options.as_of_timestamp is None:
        as_of_timestamp = int(now.timestamp())
    else:
        as_of_timestamp = parse_integer_grams(options.as_of_timestamp, "as_of_timestamp", minimum=0)
    report_id = (options.report_id or "").strip() or f"auto-{now.strftime('%Y-%m-%d')}-{as_of_timestamp}"

    auditor = None
    if options.auditor_name and options.auditor_name.strip():
        auditor = Auditor(
            name=options.auditor_name.strip(),
            report_ref=(options.auditor_ref or "").strip() or None,
        )

    vaults = None
    if options.emit_vaults:
        vault_ids = list(dict.fromkeys(u.vault_id for u in units))
        vaults = [Vault(vault_id=v, description=f"Vault {v}") for v in vault_ids]

    reserve_list = ReserveList(
        schema_version=SCHEMA_VERSION,
        report_id=report_id,
        as_of_timestamp=as_of_timestamp,
        custodian=Custodian(name=custodian_name, location=custodian_location),
        auditor=auditor,
        vaults=vaults,
        bars=units,
        totals=Totals(
            fine_gold_grams=sum(u.fine_weight_g for u in units),
            bars_count=len(units),
        ),
    )
    logger.info("Formatted %d bars into reserve list %s", len(units), report_id)
    return reserve_list


def format_bar_list_file(path: str | Path, options: FormatOptions, **kwargs: Any) -> ReserveList:
    """Read a bar export from disk and format it."""
    path = Path(path)
    if not path.exists():
        raise FormatError(f"File not found: {path}")
    return format_bar_list(path.read_text(encoding="utf-8"), detect_input_format(path), options, **kwargs)


def dumps_reserve_list(reserve_list: ReserveList) -> str:
    """Pretty JSON for a formatted reserve list, newline-terminated."""
    return json.dumps(reserve_list.model_dump(mode="json", exclude_none=True), indent=2, ensure_ascii=False) + "\n"


__all__ = [
    "InputFormat",
    "FormatOptions",
    "HEADER_ALIASES",
    "normalize_header_key",
    "pick_delimiter",
    "parse_integer_grams",
    "normalize_fineness",
    "parse_delimited_rows",
    "parse_json_bars",
    "normalize_bars",
    "detect_input_format",
    "format_bar_list",
    "format_bar_list_file",
    "dumps_reserve_list",
]
