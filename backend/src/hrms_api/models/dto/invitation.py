"""Invitation DTOs."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class InvitationCreate(BaseModel):
    """DTO for inviting a prospective employee."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    phone: str | None = Field(default=None, max_length=30)
    job_title: str | None = Field(default=None, max_length=100)
    required_form_templates: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("required_form_templates", mode="before")
    @classmethod
    def coerce_template_ids(cls, v: list | None) -> list[str]:
        return [str(item) for item in v or []]
