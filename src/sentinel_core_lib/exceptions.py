"""Exception hierarchy for the Sentinel core library.

Every error raised by the library derives from SentinelError and carries an
error_code plus a free-form context dict for logging.

Which failures reach the analyst is decided by the call site, not by the
exception class: foreground flows surface them, background recomputations
log them and move on.
"""

from typing import Any, Dict, Optional


class SentinelError(Exception):
    """Base class for all library errors"""

    default_error_code = "SENTINEL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.context = context or {}

    def __str__(self) -> str:
        return self.message


class InputValidationError(SentinelError):
    """Required input missing or invalid; rejected before any external call"""

    default_error_code = "INPUT_VALIDATION_ERROR"


class CaseNotFoundError(InputValidationError):
    """Operation referenced a case id that is not in the workspace"""

    default_error_code = "CASE_NOT_FOUND"

    def __init__(self, case_id: str):
        super().__init__(f"Case not found: {case_id}", context={"case_id": case_id})
        self.case_id = case_id


class AnalysisInProgressError(SentinelError):
    """A foreground analysis is already submitting"""

    default_error_code = "ANALYSIS_IN_PROGRESS"


class OracleError(SentinelError):
    """Enrichment oracle call failed (transport, provider or empty answer)"""

    default_error_code = "ORACLE_ERROR"


class OracleResponseError(OracleError):
    """Oracle answered, but not with the structured payload that was asked for"""

    default_error_code = "ORACLE_MALFORMED_RESPONSE"


class LLMProviderError(OracleError):
    """No configured LLM provider could serve the request"""

    default_error_code = "LLM_PROVIDER_ERROR"


class ThreatIntelLookupError(SentinelError):
    """Third-party reputation or parsing lookup failed for one indicator"""

    default_error_code = "THREAT_INTEL_LOOKUP_ERROR"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, context={"status_code": status_code})
        self.status_code = status_code


class PersistenceError(SentinelError):
    """Blob store read or write failed"""

    default_error_code = "PERSISTENCE_ERROR"
