"""
===============================================================================
TARJETA CRC — client/approval.py
===============================================================================

Class: ApprovalWorkflow

Responsibilities:
  - Cargar y exponer la lista de usuarios para el panel de administración.
  - Aplicar cada moderación de forma optimista (misma regla que el servicio:
    domain.profile_policy.apply_moderation), confirmarla contra el Profile
    Store y revertir SOLO el registro afectado si falla.
  - Re-sincronizar la lista tras reject/suspend/reactivate (pueden tener
    efectos en cascada); approve solo se aplica localmente.

Collaborators:
  - client.profile_store.ProfileStoreClient (list_users / moderate)
  - domain.profile_policy (ModerationAction, apply_moderation)

Notes:
  - Un fallo del re-fetch NO invalida la acción: se registra en `error`
    y la lista optimista queda visible.
===============================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple
from uuid import UUID

from ..crosscutting.exceptions import (
    ProfileConflictError,
    ProfileError,
    ProfileNotFoundError,
)
from ..crosscutting.logger import logger
from ..domain.entities import Profile, UserRole
from ..domain.profile_policy import ModerationAction, apply_moderation
from .profile_store import ProfileStoreClient

# approve no tiene efectos en cascada; el resto puede ocultar publicaciones.
REFETCH_POLICY: Dict[ModerationAction, bool] = {
    ModerationAction.APPROVE: False,
    ModerationAction.REJECT: True,
    ModerationAction.SUSPEND: True,
    ModerationAction.REACTIVATE: True,
}


@dataclass(frozen=True)
class ModerationOutcome:
    action: ModerationAction
    applied: Tuple[Profile, ...]
    needs_refetch: bool
    refetch_error: str | None = None


@dataclass(frozen=True)
class AdminStats:
    total_users: int
    total_buyers: int
    total_sellers: int
    pending_approvals: int
    suspended_users: int


class ApprovalWorkflow:
    def __init__(self, store: ProfileStoreClient) -> None:
        self._store = store
        self._users: List[Profile] = []
        self._error: str | None = None

    @property
    def users(self) -> List[Profile]:
        return list(self._users)

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def pending_sellers(self) -> List[Profile]:
        return [u for u in self._users if u.is_pending_approval]

    def stats(self) -> AdminStats:
        users = self._users
        return AdminStats(
            total_users=len(users),
            total_buyers=sum(1 for u in users if u.role == UserRole.BUYER),
            # Solo vendedores aprobados; los pendientes van aparte.
            total_sellers=sum(
                1 for u in users if u.role == UserRole.SELLER and u.is_approved
            ),
            pending_approvals=sum(1 for u in users if u.is_pending_approval),
            suspended_users=sum(1 for u in users if u.is_suspended),
        )

    async def load(self) -> List[Profile]:
        try:
            self._users = await self._store.list_users()
        except ProfileError as exc:
            self._error = exc.user_message
            raise
        self._error = None
        return self.users

    # -------------------------------------------------------------------------
    # Acciones
    # -------------------------------------------------------------------------
    async def approve(self, user_id: UUID, reason: str | None = None) -> ModerationOutcome:
        return await self._moderate(ModerationAction.APPROVE, user_id, reason)

    async def reject(self, user_id: UUID, reason: str | None = None) -> ModerationOutcome:
        return await self._moderate(ModerationAction.REJECT, user_id, reason)

    async def suspend(self, user_id: UUID, reason: str | None = None) -> ModerationOutcome:
        return await self._moderate(ModerationAction.SUSPEND, user_id, reason)

    async def reactivate(
        self, user_id: UUID, reason: str | None = None
    ) -> ModerationOutcome:
        return await self._moderate(ModerationAction.REACTIVATE, user_id, reason)

    def _index_of(self, user_id: UUID) -> int:
        for index, user in enumerate(self._users):
            if user.id == user_id:
                return index
        raise ProfileNotFoundError(f"Usuario {user_id} no está en la lista")

    def _restore(self, snapshot: Profile) -> None:
        for index, user in enumerate(self._users):
            if user.id == snapshot.id:
                self._users[index] = snapshot
                return

    async def _moderate(
        self, action: ModerationAction, user_id: UUID, reason: str | None
    ) -> ModerationOutcome:
        index = self._index_of(user_id)
        snapshot = self._users[index]
        try:
            optimistic = apply_moderation(snapshot, action)
        except ValueError as exc:
            raise ProfileConflictError(str(exc), status_code=409) from exc

        self._users[index] = optimistic
        self._error = None

        try:
            await self._store.moderate(user_id, action, reason)
        except ProfileError as exc:
            self._restore(snapshot)
            self._error = exc.user_message
            logger.warning(
                "Moderación revertida",
                extra={
                    "action": action.value,
                    "target_id": str(user_id),
                    "error_type": type(exc).__name__,
                },
            )
            raise

        logger.info(
            "Moderación confirmada",
            extra={"action": action.value, "target_id": str(user_id)},
        )

        needs_refetch = REFETCH_POLICY[action]
        refetch_error = None
        if needs_refetch:
            try:
                self._users = await self._store.list_users()
            except ProfileError as exc:
                refetch_error = exc.user_message
                self._error = refetch_error
                logger.warning(
                    "Re-fetch tras moderación falló",
                    extra={"action": action.value, "error_type": type(exc).__name__},
                )

        return ModerationOutcome(
            action=action,
            applied=(optimistic,),
            needs_refetch=needs_refetch,
            refetch_error=refetch_error,
        )
