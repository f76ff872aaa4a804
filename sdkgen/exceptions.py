"""Exception hierarchy for sdkgen.

All exceptions inherit from :class:`SdkgenError`, which carries an
``exit_code`` attribute. The entry point in :mod:`sdkgen.__main__`
catches ``SdkgenError`` and exits with that code.

Subclass hierarchy::

    SdkgenError (exit 1)
    +-- SpecParseError      (exit 7)
    +-- ConfigError         (exit 1)
    +-- NamingError         (exit 1)
    +-- VerificationError   (exit 8)
"""

from __future__ import annotations

EXIT_GENERIC_FAILURE = 1
EXIT_SPEC_PARSE_ERROR = 7
EXIT_VERIFICATION_FAILURE = 8


class SdkgenError(Exception):
    """Base exception for all sdkgen errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class SpecParseError(SdkgenError):
    """Raised when the OpenAPI document cannot be read, parsed, or has no server."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(SdkgenError):
    """Raised for configuration problems (bad overrides file, invalid env values)."""

    exit_code = EXIT_GENERIC_FAILURE


class NamingError(SdkgenError):
    """Raised when no identifier can be derived from a piece of document text."""

    exit_code = EXIT_GENERIC_FAILURE


class VerificationError(SdkgenError):
    """Raised when the test run over the generated package fails.

    Files already written are kept.
    """

    exit_code = EXIT_VERIFICATION_FAILURE
