"""DocuSeal template ORM model."""

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from hrms_api.models.orm.base import Base, TimestampMixin, UUIDMixin


class DocusealTemplateORM(Base, UUIDMixin, TimestampMixin):
    """Cached template definition synced from DocuSeal."""

    __tablename__ = "docuseal_templates"

    template_id: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    fields: Mapped[list[Any]] = mapped_column(JSONB, nullable=False, default=list)
    signer_roles: Mapped[list[Any]] = mapped_column(JSONB, nullable=False, default=list)
    document_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    required_for_onboarding: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # NULL means "infer from category and name"
    requires_hr_signature: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
