"""
Taxonomia de erros do motor de adoção.

Os erros não conhecem HTTP além do ``status_code`` sugerido; o handler
registrado em ``main.py`` transforma qualquer ``PetError`` em resposta JSON.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ConflictReason(str, Enum):
    own_pet = "own_pet"
    duplicate = "duplicate"
    unavailable = "unavailable"


CONFLICT_MESSAGES: Dict[ConflictReason, str] = {
    ConflictReason.own_pet: "Você não pode agendar uma visita com seu próprio Pet!",
    ConflictReason.duplicate: "Você já agendou uma visita para este Pet!",
    ConflictReason.unavailable: "Este Pet não está mais disponível para adoção!",
}


class PetError(Exception):
    status_code = 500
    code = "error"
    default_message = "Erro interno do servidor"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(PetError):
    """Entrada malformada: campo obrigatório ausente ou identificador inválido."""
    status_code = 422
    code = "validation_error"
    default_message = "Dados inválidos!"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        if self.field:
            d["field"] = self.field
        return d


class NotFoundError(PetError):
    """Registro ausente ou, por política, sem permissão sobre ele."""
    status_code = 404
    code = "not_found"
    default_message = "Pet não encontrado!"


class BusinessRuleConflict(PetError):
    status_code = 422
    code = "business_rule_conflict"

    def __init__(self, reason: ConflictReason, message: Optional[str] = None):
        super().__init__(message or CONFLICT_MESSAGES[reason])
        self.reason = reason

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["reason"] = self.reason.value
        return d


class AuthenticationError(PetError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Acesso negado!"


class DependencyFailure(PetError):
    """MongoDB ou armazenamento de imagens indisponível. Nunca é reexecutado aqui."""
    status_code = 500
    code = "dependency_failure"
