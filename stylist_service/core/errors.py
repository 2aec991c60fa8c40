"""
Error Taxonomy (v1.2.0)
Typed failures for the generation pipeline.

Every error carries a user-safe ``message`` and the HTTP ``status_code`` the
route layer maps it to. Diagnostic context (raw provider output, occasion)
stays on the exception for logging and is never sent to clients.
"""
from typing import List, Optional


class StylistError(Exception):
    """Base error for the stylist service."""

    default_message = "Something went wrong"
    status_code = 500
    kind = "error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class EmptyInventoryError(StylistError):
    """Generation was requested for a wardrobe with zero items."""

    default_message = "Add items to your wardrobe first"
    status_code = 422
    kind = "empty_inventory"


class ProviderUnavailableError(StylistError):
    """Provider unreachable, timed out, or failed on its side."""

    default_message = "Generation failed, try again"
    status_code = 503
    kind = "provider_unavailable"

    def __init__(self, detail: str = "", message: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


class MalformedResponseError(StylistError):
    """Provider output does not match the requested schema."""

    default_message = "Generation failed, try again"
    status_code = 502
    kind = "malformed_response"

    def __init__(self, detail: str = "", raw_summary: str = "", message: Optional[str] = None):
        self.detail = detail
        self.raw_summary = raw_summary
        super().__init__(message)


class ClosedVocabularyViolation(StylistError):
    """A generated outfit references item ids outside the inventory snapshot."""

    default_message = "Generation failed, try again"
    status_code = 502
    kind = "closed_vocabulary_violation"

    def __init__(
        self,
        outfit_name: str = "",
        unknown_ids: Optional[List[int]] = None,
        occasion: str = "",
        message: Optional[str] = None
    ):
        self.outfit_name = outfit_name
        self.unknown_ids = list(unknown_ids or [])
        self.occasion = occasion
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "outfit_name": self.outfit_name,
            "unknown_ids": self.unknown_ids,
            "occasion": self.occasion,
        }


class NoValidOutfitsError(StylistError):
    """Validation left zero usable outfits."""

    default_message = "Couldn't generate a valid outfit, try adjusting inputs"
    status_code = 422
    kind = "no_valid_outfits"

    def __init__(self, violations: Optional[list] = None, message: Optional[str] = None):
        self.violations = list(violations or [])
        super().__init__(message)


class BatchGenerationError(StylistError):
    """Every occasion of a batch failed."""

    default_message = "Generation failed, try again"
    status_code = 503
    kind = "batch_failed"

    def __init__(self, failures: Optional[list] = None, message: Optional[str] = None):
        self.failures = list(failures or [])
        super().__init__(message)


class PersistenceError(StylistError):
    """The store could not persist a result."""

    default_message = "Storage unavailable, try again later"
    status_code = 503
    kind = "persistence"
