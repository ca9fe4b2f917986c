"""
===============================================================================
TARJETA CRC — domain/profile_policy.py
===============================================================================

Módulo:
    Política de Perfiles (rol, aprobación, moderación)

Responsabilidades:
    - Definir reglas puras sobre Profile (sin HTTP, sin repositorio).
    - Ser la única fuente de las transiciones de moderación: la usa el
      caso de uso del servicio y también la actualización optimista del
      cliente, para que ambos lados apliquen exactamente los mismos cambios.

Colaboradores:
    - domain.entities.Profile, UserRole
    - application.usecases.register_profile / update_my_profile / moderate_user
    - client.approval.ApprovalWorkflow

Reglas (intención):
    - buyer ⇒ aprobado; seller arranca pendiente; admin nunca auto-asignable.
    - approve: seller pendiente -> aprobado.
    - reject: seller pendiente -> buyer (la cuenta sigue como comprador).
    - suspend / reactivate: alternan is_active.
===============================================================================
"""

from __future__ import annotations

from dataclasses import replace
from enum import Enum
from typing import Any

from .entities import SELF_ASSIGNABLE_ROLES, Profile, UserRole


class ModerationAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    SUSPEND = "suspend"
    REACTIVATE = "reactivate"


def is_self_assignable(role: UserRole | None) -> bool:
    return role in SELF_ASSIGNABLE_ROLES


def initial_approval(role: UserRole) -> bool:
    """Aprobación inicial al confirmar el rol: solo los vendedores esperan."""
    return role != UserRole.SELLER


def can_moderate(actor: Profile | None) -> bool:
    """Solo un admin activo modera."""
    return actor is not None and actor.role == UserRole.ADMIN and actor.is_active


def can_be_suspended(target: Profile, actor: Profile) -> bool:
    """Ni admins ni el propio actor pueden ser suspendidos."""
    return target.role != UserRole.ADMIN and target.id != actor.id


def moderation_changes(
    profile: Profile, action: ModerationAction
) -> dict[str, Any] | None:
    """
    Calcula los campos que cambia una acción de moderación.

    Retorna:
      - None: transición inválida para el estado actual.
      - {}: el perfil ya está en el estado destino (idempotente, sin efecto).
      - dict con los campos a escribir.
    """
    if action == ModerationAction.APPROVE:
        if profile.role != UserRole.SELLER:
            return None
        return {} if profile.is_approved else {"is_approved": True}

    if action == ModerationAction.REJECT:
        if not profile.is_pending_approval:
            return None
        return {"role": UserRole.BUYER, "is_approved": True}

    if action == ModerationAction.SUSPEND:
        return {"is_active": False} if profile.is_active else {}

    if action == ModerationAction.REACTIVATE:
        return {} if profile.is_active else {"is_active": True}

    return None


def apply_moderation(profile: Profile, action: ModerationAction) -> Profile:
    """
    Devuelve el perfil con la acción aplicada (sin tocar updated_at).

    Raises:
        ValueError: si la transición es inválida.
    """
    changes = moderation_changes(profile, action)
    if changes is None:
        raise ValueError(
            f"Transición '{action.value}' inválida para el perfil {profile.id}"
        )
    return replace(profile, **changes) if changes else profile
