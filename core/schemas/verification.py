"""
Schemas & Canonicalization
File: verification.py

Purpose: Non-raising outcome reports.
The vector checker, check_attestation() and the publisher pre-flight
collect one CheckResult per binding they test and hand back a
VerificationResult instead of raising on the first mismatch.
"""

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .errors import PorError


CheckStatus = Literal["passed", "warning", "failed"]

# What a failed report disputes
ChallengeKind = Literal["leaf", "merkle_root", "bar_list_hash", "signature", "domain"]


class CheckResult(BaseModel):
    """
    One binding that was tested.

    A warning never fails the report (ok stays true); it flags something an
    operator should look at, such as an unreachable allowlist view.
    """

    model_config = ConfigDict(extra="forbid")

    check_id: str = Field(..., min_length=1, description="e.g. merkle_root, leaf_hash:<serial>, chain_id")
    ok: bool
    status: CheckStatus
    message: str
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_failure(self) -> bool:
        return self.status == "failed"

    @property
    def is_warning(self) -> bool:
        return self.status == "warning"

    @classmethod
    def passed(cls, check_id: str, message: str = "ok", details: Optional[dict[str, Any]] = None) -> "CheckResult":
        return cls(check_id=check_id, ok=True, status="passed", message=message, details=details or {})

    @classmethod
    def warning(cls, check_id: str, message: str, details: Optional[dict[str, Any]] = None) -> "CheckResult":
        return cls(check_id=check_id, ok=True, status="warning", message=message, details=details or {})

    @classmethod
    def failed(cls, check_id: str, message: str, details: Optional[dict[str, Any]] = None) -> "CheckResult":
        return cls(check_id=check_id, ok=False, status="failed", message=message, details=details or {})


class ChallengeRef(BaseModel):
    """The first artifact a failed report disputes (a leaf names its serial)."""

    model_config = ConfigDict(extra="forbid")

    kind: ChallengeKind
    serial_no: Optional[str] = None
    reason: Optional[str] = None


class VerificationResult(BaseModel):
    """
    Ordered list of checks plus the overall verdict.

    ok is false as soon as any failed check is recorded. ``error`` carries
    the structured core error when the report was produced by catching one.
    """

    model_config = ConfigDict(extra="forbid")

    ok: bool
    checks: list[CheckResult] = Field(default_factory=list)
    challenge: Optional[ChallengeRef] = None
    error: Optional[PorError] = None

    @property
    def has_warnings(self) -> bool:
        return any(c.is_warning for c in self.checks)

    @property
    def error_count(self) -> int:
        return sum(1 for c in self.checks if c.is_failure)

    @property
    def warning_count(self) -> int:
        return sum(1 for c in self.checks if c.is_warning)

    @property
    def passed_count(self) -> int:
        return sum(1 for c in self.checks if c.status == "passed")

    def get_error_messages(self) -> list[str]:
        return [c.message for c in self.checks if c.is_failure]

    @classmethod
    def success(cls, checks: Optional[list[CheckResult]] = None) -> "VerificationResult":
        return cls(ok=True, checks=checks or [])

    @classmethod
    def failure(
        cls,
        checks: list[CheckResult],
        challenge: Optional[ChallengeRef] = None,
        error: Optional[PorError] = None,
    ) -> "VerificationResult":
        return cls(ok=False, checks=checks, challenge=challenge, error=error)

    def add_check(self, check: CheckResult) -> None:
        self.checks.append(check)
        if check.is_failure:
            self.ok = False

    def dispute(self, kind: ChallengeKind, serial_no: Optional[str] = None, reason: Optional[str] = None) -> None:
        """Record a challenge unless an earlier check already raised one."""
        if self.challenge is None:
            self.challenge = ChallengeRef(kind=kind, serial_no=serial_no, reason=reason)

    def compare_hash(
        self,
        check_id: str,
        expected: str,
        actual: str,
        label: str,
        challenge: Optional[ChallengeRef] = None,
    ) -> bool:
        """
        Record a hex hash comparison (case-insensitive).

        Args:
            check_id: Id for the recorded check
            expected: Published hash
            actual: Recomputed hash
            label: Name used in the check message
            challenge: Disputed artifact to record on mismatch

        Returns:
            True if the hashes match
        """
        if expected.lower() == actual.lower():
            self.add_check(CheckResult.passed(check_id, f"{label} matches"))
            return True
        self.add_check(CheckResult.failed(check_id, f"{label} mismatch", {"expected": expected, "actual": actual}))
        if challenge is not None:
            self.dispute(challenge.kind, challenge.serial_no, challenge.reason)
        return False
