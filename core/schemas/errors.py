"""
Schemas & Canonicalization
File: errors.py

Purpose: Standard error taxonomy across the PoR core.
Defines both a Pydantic model for structured error communication
and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the core."""

    # Shape & Format Errors
    FORMAT_ERROR = "FORMAT_ERROR"
    ENCODING_ERROR = "ENCODING_ERROR"

    # Schema & Validation Errors
    SCHEMA_VALIDATION_ERROR = "SCHEMA_VALIDATION_ERROR"
    UNSUPPORTED_VERSION = "UNSUPPORTED_VERSION"
    DUPLICATE_SERIAL = "DUPLICATE_SERIAL"
    DOMAIN_MISMATCH = "DOMAIN_MISMATCH"
    TOTALS_MISMATCH = "TOTALS_MISMATCH"

    # Signature Errors
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"

    # Merkle & Commitment Errors
    MERKLE_PROOF_INVALID = "MERKLE_PROOF_INVALID"
    ROOT_MISMATCH = "ROOT_MISMATCH"
    LEAF_HASH_MISMATCH = "LEAF_HASH_MISMATCH"
    BAR_LIST_HASH_MISMATCH = "BAR_LIST_HASH_MISMATCH"

    # Registry Errors
    REGISTRY_ERROR = "REGISTRY_ERROR"
    SIGNER_NOT_ALLOWED = "SIGNER_NOT_ALLOWED"
    CHAIN_ID_MISMATCH = "CHAIN_ID_MISMATCH"
    REPORT_EXISTS = "REPORT_EXISTS"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class PorError(BaseModel):
    """
    Base error model for structured error communication.

    Used for passing errors across the API/CLI boundary without exceptions,
    enabling structured error handling and serialization.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.FORMAT_ERROR],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "PorException":
        """Convert this error model to a raised exception."""
        return PorException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class PorException(Exception):
    """
    Base exception for all PoR core errors.

    Carries structured error information and can be converted
    to/from PorError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "POR_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> PorError:
        """Convert this exception to a PorError model."""
        return PorError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


def _with_field(
    details: dict[str, Any] | None,
    field_path: str | None,
    value: Any = None,
) -> dict[str, Any]:
    full_details = dict(details or {})
    if field_path:
        full_details["field_path"] = field_path
    if value is not None:
        full_details["value"] = value if isinstance(value, (str, int, bool)) else repr(value)
    return full_details


class FormatError(PorException):
    """Malformed hex, wrong byte length, or wrong document shape."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.FORMAT_ERROR,
            details=_with_field(details, field_path, value),
        )


class ValidationError(PorException):
    """Schema mismatch, cross-field mismatch, or invalid domain value."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
        code: str = ErrorCodes.SCHEMA_VALIDATION_ERROR,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=_with_field(details, field_path, value),
        )


class EncodingError(ValidationError):
    """Raised when a record cannot be put into canonical leaf form."""

    def __init__(
        self,
        message: str,
        field_path: str | None = None,
        value: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            field_path=field_path,
            value=value,
            details=details,
            code=ErrorCodes.ENCODING_ERROR,
        )


class SignatureMismatchError(PorException):
    """Recovered signer differs from the declared or expected signer."""

    def __init__(
        self,
        message: str,
        recovered: str | None = None,
        declared: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = dict(details or {})
        if recovered:
            full_details["recovered"] = recovered
        if declared:
            full_details["declared"] = declared
        super().__init__(
            message=message,
            code=ErrorCodes.SIGNATURE_MISMATCH,
            details=full_details,
        )


class RegistryException(PorException):
    """Raised when the registry collaborator rejects or fails a call."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.REGISTRY_ERROR,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(
            message=message,
            code=code,
            details=details,
            retryable=retryable,
        )


class IntegrityWarning(UserWarning):
    """Advisory totals disagree with the recomputed aggregate."""


# pydantic error types that describe a malformed shape rather than a bad value
_FORMAT_ERROR_TYPES = frozenset({"string_pattern_mismatch"})

_VERSION_FIELDS = frozenset({"schema_version", "eip712_types_version"})


def from_pydantic_error(exc: Any, document: str) -> PorException:
    """
    Convert a pydantic ValidationError into the core taxonomy.

    The first failing field decides the error: hex/shape pattern failures
    become FormatError, everything else ValidationError. All failures are
    listed under ``details["errors"]``.

    Args:
        exc: pydantic.ValidationError raised by model_validate
        document: Document name used in the message (e.g. "Attestation")
    """
    errors = exc.errors()
    summary = [
        {
            "field_path": ".".join(str(p) for p in err.get("loc", ())),
            "type": err.get("type"),
            "message": err.get("msg"),
        }
        for err in errors
    ]
    first = errors[0] if errors else {}
    field_path = ".".join(str(p) for p in first.get("loc", ())) or None
    value = first.get("input")
    if not isinstance(value, (str, int, bool)):
        value = None
    message = f"Invalid {document}: {field_path or '<root>'}: {first.get('msg', 'validation failed')}"
    details = {"document": document, "errors": summary}

    if first.get("type") in _FORMAT_ERROR_TYPES:
        return FormatError(message, field_path=field_path, value=value, details=details)
    code = ErrorCodes.UNSUPPORTED_VERSION if field_path in _VERSION_FIELDS else ErrorCodes.SCHEMA_VALIDATION_ERROR
    return ValidationError(message, field_path=field_path, value=value, details=details, code=code)
