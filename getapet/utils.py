# getapet/utils.py
from typing import Any, Dict, Optional
from bson import ObjectId
from datetime import datetime, timezone

from .errors import ValidationError

def to_id(doc: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Converte _id -> id (str) e todos os ObjectIds em strings, inclusive em
    subdocumentos (dono) e listas de subdocumentos (adotantes).
    Datas são mantidas como datetime para os schemas pydantic.
    Se doc for None, devolve {}.
    """
    if doc is None:
        return {}
    d = dict(doc)

    if "_id" in d:
        d["id"] = str(d.pop("_id"))

    for key, value in d.items():
        if isinstance(value, ObjectId):
            d[key] = str(value)
        elif isinstance(value, dict):
            d[key] = to_id(value)
        elif isinstance(value, list):
            d[key] = [
                str(item) if isinstance(item, ObjectId)
                else to_id(item) if isinstance(item, dict)
                else item
                for item in value
            ]

    return d

def to_object_id(value: Any, message: str = "ID inválido!") -> ObjectId:
    """
    Converte uma string em ObjectId com validação.
    Identificador malformado é erro de validação, nunca "não encontrado".
    """
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError(message, field="id")
    return ObjectId(value)

def utcnow() -> datetime:
    return datetime.now(timezone.utc)
