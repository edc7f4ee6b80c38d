# getapet/services/validation.py
"""
Validação dos campos de um Pet vindos de formulário (multipart) ou JSON.

A ordem é fixa (nome, idade, peso, cor e, no update, status) e só o primeiro
problema é reportado, com mensagem de campo único.
"""
import math
from typing import Any, Mapping, Optional

from ..errors import ValidationError
from ..schemas.pet import PetFields

TRUE_VALUES = {"true", "1", "on", "yes", "sim"}
FALSE_VALUES = {"false", "0", "off", "no", "nao", "não"}

# maior inteiro que o BSON guarda (int64)
MAX_AGE = 2 ** 63 - 1


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(raw: Mapping[str, Any], field: str, missing: str) -> str:
    value = raw.get(field)
    if _blank(value) or not isinstance(value, str):
        raise ValidationError(missing, field=field)
    return value.strip()


def _age(raw: Mapping[str, Any]) -> int:
    value = raw.get("age")
    if _blank(value):
        raise ValidationError("A idade é obrigatória!", field="age")
    invalid = ValidationError("A idade deve ser um número inteiro não negativo!", field="age")
    if isinstance(value, bool):
        raise invalid
    if isinstance(value, float):
        if not value.is_integer():
            raise invalid
        value = int(value)
    if isinstance(value, str):
        value = value.strip()
        if not value.isdecimal():
            raise invalid
        try:
            value = int(value)
        except ValueError:
            raise invalid
    if not isinstance(value, int) or not 0 <= value <= MAX_AGE:
        raise invalid
    return value


def _weight(raw: Mapping[str, Any]) -> float:
    value = raw.get("weight")
    if _blank(value):
        raise ValidationError("O peso é obrigatório!", field="weight")
    invalid = ValidationError("O peso deve ser um número não negativo!", field="weight")
    if isinstance(value, bool):
        raise invalid
    if isinstance(value, str):
        try:
            value = float(value.strip().replace(",", "."))
        except ValueError:
            raise invalid
    if not isinstance(value, (int, float)):
        raise invalid
    try:
        value = float(value)
    except OverflowError:
        raise invalid
    if not math.isfinite(value) or value < 0:
        raise invalid
    return value


def _available(raw: Mapping[str, Any]) -> bool:
    value = raw.get("available")
    if _blank(value):
        raise ValidationError("O status é obrigatório!", field="available")
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
    raise ValidationError("O status deve ser verdadeiro ou falso!", field="available")


def _description(raw: Mapping[str, Any]) -> Optional[str]:
    value = raw.get("description")
    if _blank(value):
        return None
    return str(value).strip()


def validate_pet_fields(raw: Mapping[str, Any], require_available: bool = False) -> PetFields:
    name = _text(raw, "name", "O nome é obrigatório!")
    age = _age(raw)
    weight = _weight(raw)
    color = _text(raw, "color", "A cor é obrigatória!")
    available = _available(raw) if require_available else None
    return PetFields(
        name=name,
        age=age,
        description=_description(raw),
        weight=weight,
        color=color,
        available=available,
    )
