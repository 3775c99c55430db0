"""
Issue records and the result-value protocol.

Responsibility:
    Every computation returns a frozen result dataclass whose last field is
    ``issues: tuple[Issue, ...]``. Issues classify what went wrong
    (validation, data integrity, configuration) and how badly (error,
    warning). Callers decide whether a warning blocks an action or is
    merely surfaced.

Invariants:
    - An ``Issue`` never raises; it IS the error representation.
    - ``raise_for_errors()`` is the only bridge from issues to exceptions.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from bookkeeping_kernel.exceptions import (
    BookkeepingError,
    ConfigurationError,
    InvalidAmountError,
    InvalidAssetError,
    MissingSystemAccountError,
    UnsupportedTaxRateError,
    ValidationFailedError,
)


class IssueKind(str, Enum):
    VALIDATION = "validation"
    DATA_INTEGRITY = "data_integrity"
    CONFIGURATION = "configuration"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class IssueCode:
    """Machine-readable issue codes."""

    INVALID_AMOUNT = "INVALID_AMOUNT"
    NON_DECIMAL_AMOUNT = "NON_DECIMAL_AMOUNT"
    UNSUPPORTED_TAX_RATE = "UNSUPPORTED_TAX_RATE"
    UNSUPPORTED_TAX_INCLUSION = "UNSUPPORTED_TAX_INCLUSION"
    UNKNOWN_ACCOUNT = "UNKNOWN_ACCOUNT"
    UNKNOWN_OPENING_ACCOUNT = "UNKNOWN_OPENING_ACCOUNT"
    SELF_REFERENCING_ENTRY = "SELF_REFERENCING_ENTRY"
    INVALID_ASSET = "INVALID_ASSET"
    MISSING_SYSTEM_ACCOUNT = "MISSING_SYSTEM_ACCOUNT"
    RETAINED_EARNINGS_NOT_FOUND = "RETAINED_EARNINGS_NOT_FOUND"
    INVALID_HORIZON = "INVALID_HORIZON"


@dataclass(frozen=True)
class Issue:
    """
    A single validation error or warning.

    Contract:
        Carries a kind, a severity, a machine-readable code, a
        human-readable message, an optional field path and an optional
        details dict.
    """

    kind: IssueKind
    severity: Severity
    code: str
    message: str
    field: str | None = None
    details: dict[str, Any] | None = None

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    @classmethod
    def validation(
        cls,
        code: str,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> Issue:
        return cls(IssueKind.VALIDATION, Severity.ERROR, code, message, field, details)

    @classmethod
    def integrity_warning(
        cls,
        code: str,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> Issue:
        return cls(
            IssueKind.DATA_INTEGRITY, Severity.WARNING, code, message, field, details
        )

    @classmethod
    def configuration(
        cls,
        code: str,
        message: str,
        severity: Severity = Severity.ERROR,
        details: dict[str, Any] | None = None,
    ) -> Issue:
        return cls(IssueKind.CONFIGURATION, severity, code, message, None, details)


_VALIDATION_EXCEPTIONS: dict[str, type[ValidationFailedError]] = {
    IssueCode.INVALID_AMOUNT: InvalidAmountError,
    IssueCode.NON_DECIMAL_AMOUNT: InvalidAmountError,
    IssueCode.UNSUPPORTED_TAX_RATE: UnsupportedTaxRateError,
    IssueCode.UNSUPPORTED_TAX_INCLUSION: UnsupportedTaxRateError,
    IssueCode.INVALID_ASSET: InvalidAssetError,
    IssueCode.INVALID_HORIZON: InvalidAssetError,
}


def exception_for(issues: tuple[Issue, ...]) -> BookkeepingError:
    """Map the first error issue to its typed exception."""
    errors = tuple(i for i in issues if i.is_error)
    first = errors[0]
    if first.kind == IssueKind.CONFIGURATION:
        if first.code == IssueCode.MISSING_SYSTEM_ACCOUNT:
            missing = tuple((first.details or {}).get("missing_roles", ()))
            return MissingSystemAccountError(missing, errors)
        return ConfigurationError(first.message)
    exc_type = _VALIDATION_EXCEPTIONS.get(first.code)
    if exc_type is None:
        return ValidationFailedError(first.message, errors)
    return exc_type(first.field, first.message, errors)


class IssueCarrier:
    """
    Mixin for result dataclasses with an ``issues`` field.

    Exposes ``errors``, ``warnings``, ``ok`` and ``raise_for_errors()``.
    """

    issues: tuple[Issue, ...]

    @property
    def errors(self) -> tuple[Issue, ...]:
        return tuple(i for i in self.issues if i.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[Issue, ...]:
        return tuple(i for i in self.issues if i.severity == Severity.WARNING)

    @property
    def ok(self) -> bool:
        return not self.errors

    def has_code(self, code: str) -> bool:
        return any(i.code == code for i in self.issues)

    def raise_for_errors(self) -> None:
        """Raise the typed exception for the first error issue, if any."""
        if self.errors:
            raise exception_for(self.issues)


def collect(*groups: Iterable[Issue]) -> tuple[Issue, ...]:
    """Concatenate issue groups preserving order."""
    out: list[Issue] = []
    for group in groups:
        out.extend(group)
    return tuple(out)
