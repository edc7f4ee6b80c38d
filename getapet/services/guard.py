# getapet/services/guard.py
"""
Política de autorização do ciclo de vida do Pet.

``decide`` é uma função pura: não acessa banco nem levanta exceções. O motor
chama ``enforce`` para transformar uma negação no erro correspondente.
Negações de update/delete para quem não é dono usam ``not_found`` de propósito,
para que um estranho não consiga distinguir "não existe" de "não é seu".
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from ..errors import (
    AuthenticationError,
    BusinessRuleConflict,
    ConflictReason,
    NotFoundError,
)
from ..schemas.pet import PetOut
from ..schemas.user import Identity


class Operation(str, Enum):
    create = "create"
    read = "read"
    update = "update"
    delete = "delete"
    schedule = "schedule"
    conclude = "conclude"


class DenyReason(str, Enum):
    unauthenticated = "unauthenticated"
    not_found = "not_found"
    own_pet = "own_pet"
    duplicate = "duplicate"
    unavailable = "unavailable"


class Decision(BaseModel):
    allowed: bool
    reason: Optional[DenyReason] = None


ALLOW = Decision(allowed=True)


def deny(reason: DenyReason) -> Decision:
    return Decision(allowed=False, reason=reason)


def decide(
    operation: Operation,
    pet: Optional[PetOut],
    identity: Optional[Identity],
    restrict_conclude: bool = False,
) -> Decision:
    if operation == Operation.read:
        return ALLOW
    if identity is None:
        return deny(DenyReason.unauthenticated)
    if operation == Operation.create:
        return ALLOW
    if pet is None:
        return deny(DenyReason.not_found)

    if operation in (Operation.update, Operation.delete):
        return ALLOW if pet.is_owned_by(identity.id) else deny(DenyReason.not_found)

    if operation == Operation.schedule:
        if pet.is_owned_by(identity.id):
            return deny(DenyReason.own_pet)
        if identity.id in pet.adopter_ids():
            return deny(DenyReason.duplicate)
        if not pet.available:
            return deny(DenyReason.unavailable)
        return ALLOW

    if operation == Operation.conclude:
        if not restrict_conclude:
            return ALLOW
        if pet.is_owned_by(identity.id) or identity.id in pet.adopter_ids():
            return ALLOW
        return deny(DenyReason.not_found)

    raise ValueError(f"Operação desconhecida: {operation!r}")


_CONFLICTS = {
    DenyReason.own_pet: ConflictReason.own_pet,
    DenyReason.duplicate: ConflictReason.duplicate,
    DenyReason.unavailable: ConflictReason.unavailable,
}


def enforce(decision: Decision) -> None:
    if decision.allowed:
        return
    if decision.reason == DenyReason.unauthenticated:
        raise AuthenticationError()
    if decision.reason in _CONFLICTS:
        raise BusinessRuleConflict(_CONFLICTS[decision.reason])
    raise NotFoundError()
