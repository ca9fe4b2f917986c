"""
===============================================================================
TARJETA CRC — schemas/profiles.py
===============================================================================

Módulo:
    Schemas wire para perfiles y moderación

Responsabilidades:
    - Definir DTOs de request/response de /auth/* y /admin/users/*.
    - Serializar en camelCase (subjectId, isApproved, needsRoleSelection...).
    - Normalizar roles heredados al leer (comprador/vendedor/pending_vendor).

Colaboradores:
    - domain.entities.Profile, UserRole, normalize_role
===============================================================================
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ...domain.entities import Profile, UserRole, normalize_role


class WireModel(BaseModel):
    """Base: JSON en camelCase, acepta también snake_case al construir."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def _strip(v: str | None) -> str | None:
    return v.strip() if v is not None else None


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class RegisterProfileIn(WireModel):
    """Body de POST /auth/register."""

    name: str = Field(..., min_length=1, max_length=120)
    role: UserRole
    avatar: str | None = Field(default=None, max_length=2048)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _strip(v)


class UpdateProfileIn(WireModel):
    """Body de PUT /auth/profile (patch: solo campos presentes)."""

    name: str | None = Field(default=None, min_length=1, max_length=120)
    avatar: str | None = Field(default=None, max_length=2048)
    role: UserRole | None = None
    needs_role_selection: bool | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _strip(v)

    def is_empty(self) -> bool:
        return not self.model_fields_set


class ModerationIn(WireModel):
    """Body opcional de PUT /admin/users/{id}/<acción>."""

    reason: str | None = Field(default=None, max_length=500)


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------
class ProfileOut(WireModel):
    """Perfil tal como viaja por HTTP."""

    id: UUID
    subject_id: str
    email: str
    name: str
    role: UserRole
    is_approved: bool
    needs_role_selection: bool = False
    is_active: bool = True
    avatar: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_legacy_role(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("role"), str):
            return data
        role, forced_approval = normalize_role(data["role"])
        normalized = {**data, "role": role}
        if forced_approval is not None:
            key = "is_approved" if "is_approved" in data else "isApproved"
            normalized[key] = forced_approval
        return normalized

    @classmethod
    def from_domain(cls, profile: Profile) -> "ProfileOut":
        return cls(
            id=profile.id,
            subject_id=profile.subject_id,
            email=profile.email,
            name=profile.name,
            role=profile.role,
            is_approved=profile.is_approved,
            needs_role_selection=profile.needs_role_selection,
            is_active=profile.is_active,
            avatar=profile.avatar,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )

    def to_domain(self) -> Profile:
        return Profile(
            id=self.id,
            subject_id=self.subject_id,
            email=self.email,
            name=self.name,
            role=self.role,
            is_approved=self.is_approved,
            needs_role_selection=self.needs_role_selection,
            is_active=self.is_active,
            avatar=self.avatar,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
