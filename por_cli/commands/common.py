"""
Shared helpers for CLI commands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from core.schemas.errors import FormatError


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def read_json_file(path: str | Path, label: str = "file") -> Any:
    """
    Load a JSON document from disk.

    Raises:
        FormatError: If the file is missing or not valid JSON
    """
    path = Path(path)
    if not path.exists():
        raise FormatError(f"{label} not found: {path}", field_path=label, value=str(path))
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise FormatError(f"{label} is not valid JSON: {e.msg} (line {e.lineno})", field_path=label) from e
    except UnicodeDecodeError as e:
        raise FormatError(f"{label} is not valid UTF-8", field_path=label) from e


def dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def emit(text: str, out: str | None) -> None:
    """Write to --out when given, otherwise stdout."""
    if out:
        out_path = Path(out)
        if out_path.parent and not out_path.parent.exists():
            out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        logger.info("Wrote %s", out_path)
    else:
        print(text, end="")
