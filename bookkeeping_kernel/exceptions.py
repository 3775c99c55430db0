"""
Typed exception hierarchy for the bookkeeping core.

Computation entry points never raise: they return result values carrying
``Issue`` records (see ``bookkeeping_kernel.domain.results``). These
exceptions exist for two cases only:

  1. A caller explicitly escalates a result with ``raise_for_errors()``.
  2. The configuration loader rejects a malformed YAML document.

Every class carries a machine-readable ``code`` attribute and structured
fields, so callers catch by type and report by code, never by message.

    BookkeepingError (base)
    |
    +-- ValidationFailedError
    |   +-- InvalidAmountError
    |   +-- UnsupportedTaxRateError
    |   +-- InvalidAssetError
    |
    +-- ConfigurationError
        +-- MissingSystemAccountError
        +-- ConfigLoadError
"""

from __future__ import annotations

from typing import Any


class BookkeepingError(Exception):
    """
    Base exception for all bookkeeping errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "BOOKKEEPING_ERROR"


# Validation exceptions


class ValidationFailedError(BookkeepingError):
    """One or more inputs were malformed; the computation was refused."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, message: str, issues: tuple[Any, ...] = ()):
        self.issues = issues
        super().__init__(message)


class InvalidAmountError(ValidationFailedError):
    """A monetary amount was non-positive or not a Decimal."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str | None, message: str, issues: tuple[Any, ...] = ()):
        self.field = field
        super().__init__(message, issues)


class UnsupportedTaxRateError(ValidationFailedError):
    """Tax rate outside the supported set."""

    code: str = "UNSUPPORTED_TAX_RATE"

    def __init__(self, field: str | None, message: str, issues: tuple[Any, ...] = ()):
        self.field = field
        super().__init__(message, issues)


class InvalidAssetError(ValidationFailedError):
    """Fixed asset attributes cannot produce a depreciation schedule."""

    code: str = "INVALID_ASSET"

    def __init__(self, field: str | None, message: str, issues: tuple[Any, ...] = ()):
        self.field = field
        super().__init__(message, issues)


# Configuration exceptions


class ConfigurationError(BookkeepingError):
    """Base exception for configuration problems."""

    code: str = "CONFIGURATION_ERROR"


class MissingSystemAccountError(ConfigurationError):
    """A required system account is absent from the chart of accounts."""

    code: str = "MISSING_SYSTEM_ACCOUNT"

    def __init__(self, missing_roles: tuple[str, ...], issues: tuple[Any, ...] = ()):
        self.missing_roles = missing_roles
        self.issues = issues
        super().__init__(
            f"Required system account(s) missing: {', '.join(missing_roles)}"
        )


class ConfigLoadError(ConfigurationError):
    """A configuration document could not be parsed or validated."""

    code: str = "CONFIG_LOAD_ERROR"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Cannot load configuration from {source}: {reason}")
