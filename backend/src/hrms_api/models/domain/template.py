"""Form template domain model."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

EMPLOYMENT_AGREEMENT_CATEGORY = "employment_agreement"
HR_SIGNATURE_NAME_KEYWORDS = ("agreement", "contract")


class FormTemplate(BaseModel):
    """Cached metadata of a signable document defined at the provider.

    ``requires_hr_signature`` is an operator override. When it is None the
    requirement is inferred from category and name.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    template_id: str
    name: str
    description: str | None = None
    category: str | None = None
    fields: Any = Field(default_factory=list)
    signer_roles: list[Any] = Field(default_factory=list)
    document_count: int = 0
    enabled: bool = True
    required_for_onboarding: bool = False
    requires_hr_signature: bool | None = None
    sort_order: int = 0
    last_synced_at: datetime | None = None

    def needs_hr_signature(self) -> bool:
        """Decide whether HR must counter-sign this document.

        The explicit flag wins. Otherwise the employment agreement category or
        "agreement"/"contract" in the name (case-insensitive) mark it.
        """
        if self.requires_hr_signature is not None:
            return self.requires_hr_signature
        if (self.category or "").lower() == EMPLOYMENT_AGREEMENT_CATEGORY:
            return True
        name = self.name.lower()
        return any(keyword in name for keyword in HR_SIGNATURE_NAME_KEYWORDS)

    def field_names(self) -> set[str]:
        """Names of the fillable fields the template declares.

        Synced field metadata arrives as a list of field dicts, as a dict
        wrapping ``fields``/``template_fields``, or as its JSON encoding.
        """
        fields: Any = self.fields
        if isinstance(fields, str):
            try:
                fields = json.loads(fields)
            except ValueError:
                return set()
        if isinstance(fields, dict):
            fields = fields.get("fields") or fields.get("template_fields") or []
        if not isinstance(fields, list):
            return set()
        names: set[str] = set()
        for field in fields:
            if isinstance(field, str):
                names.add(field)
            elif isinstance(field, dict) and field.get("name"):
                names.add(str(field["name"]))
        return names


class TemplateSyncResult(BaseModel):
    """Outcome of a template sync run."""

    synced: int = 0
    failed: int = 0
    message: str
