"""
SiteAudit Exception Hierarchy

Provides domain-specific error codes for callers embedding the scoring and
report engine. Every failure returns a deterministic, actionable error code.

Error Codes:
- SA_SCHEMA_INVALID: Document shape is wrong (not a mapping, bad YAML)
- SA_INPUT_INVALID: A value invariant was violated (blank asset name, bad count)
- SA_REPORT_FAILED: The report could not be packaged into a document
- SA_PUBLISH_FAILED: The metrics webhook did not accept the snapshot
- SA_INTERNAL_ERROR: Unexpected internal error (catch-all)
"""

from typing import Any, Dict, Optional
import json

__all__ = [
    # Exception classes
    'SiteAuditError',
    'SchemaInvalidError',
    'InputInvalidError',
    'ReportGenerationError',
    'PublishError',
    'InternalError',
    # Mapping utilities
    'EXCEPTION_MAP',
    'wrap_internal_exception',
]


class SiteAuditError(Exception):
    """
    Root of every error the engine raises.

    Callers branch on ``code`` (stable SA_* string) rather than on the class,
    so the CLI exit status and the HTTP error body stay the same when a
    subclass is reorganized. ``details`` carries machine-readable context such
    as the offending observation id; ``request_id`` is filled in by the
    service when the error crosses the HTTP boundary.
    """

    code: str = "SA_INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details) if details else {}
        self.request_id = request_id

    def to_dict(self) -> Dict[str, Any]:
        """Error body: code, message, details, plus request_id once known."""
        body: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }
        if self.request_id is not None:
            body["request_id"] = self.request_id
        return body

    def to_json(self, indent: Optional[int] = None) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, details={self.details!r})"


class SchemaInvalidError(SiteAuditError):
    """
    Document shape is wrong.

    Raised when a session or config document cannot be read at all:
    - Top-level value is not a mapping
    - YAML / JSON does not parse
    - A nested section has the wrong container type
    """

    code: str = "SA_SCHEMA_INVALID"


class InputInvalidError(SiteAuditError):
    """
    A value invariant was violated.

    Raised when constructing a session value from bad input:
    - Observation with a blank asset name
    - Non-compliance count below 1
    - More than ten photos on one observation
    - Duplicate observation identifiers or categories
    """

    code: str = "SA_INPUT_INVALID"


class ReportGenerationError(SiteAuditError):
    """
    The document tree could not be packaged into the container format.

    Fatal for the whole report call. No partial byte stream is ever returned;
    the original exception is chained and named in ``details``.
    """

    code: str = "SA_REPORT_FAILED"


class PublishError(SiteAuditError):
    """The metrics webhook rejected the snapshot or could not be reached."""

    code: str = "SA_PUBLISH_FAILED"


class InternalError(SiteAuditError):
    """
    Unexpected internal error.

    This is the default error code for the SiteAuditError base class.
    """

    code: str = "SA_INTERNAL_ERROR"


# =============================================================================
# EXCEPTION MAPPING
# =============================================================================

# Used by wrap_internal_exception() at API boundaries
EXCEPTION_MAP: Dict[type, type] = {
    ValueError: InputInvalidError,
    TypeError: InputInvalidError,
    KeyError: SchemaInvalidError,
}


def wrap_internal_exception(
    exc: Exception,
    default_message: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None
) -> SiteAuditError:
    """
    Convert a stray built-in exception into a coded SiteAuditError.

    Domain errors pass through untouched. Anything else is matched against
    EXCEPTION_MAP by isinstance (so subclasses such as UnicodeDecodeError
    map like their base) and falls back to InternalError. The original type
    name is kept in ``details["internal_error"]``. Chain the result:

        except Exception as e:
            raise wrap_internal_exception(e, "Unexpected error") from e
    """
    if isinstance(exc, SiteAuditError):
        return exc

    error_class = next(
        (target for source, target in EXCEPTION_MAP.items() if isinstance(exc, source)),
        InternalError,
    )
    error_details = dict(details) if details else {}
    error_details["internal_error"] = type(exc).__name__

    return error_class(
        default_message or str(exc),
        details=error_details,
        request_id=request_id,
    )
