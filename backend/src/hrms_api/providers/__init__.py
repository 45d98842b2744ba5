"""Provider integrations package."""

from hrms_api.providers.docuseal import (
    DocuSealProvider,
    normalize_submission,
    normalize_submitter,
)

__all__ = [
    "DocuSealProvider",
    "normalize_submission",
    "normalize_submitter",
]
