# getapet/routers/users.py
from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from typing import Any, Dict, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId
from pydantic import EmailStr, TypeAdapter, ValidationError as PydanticValidationError
import logging

from ..config import get_settings
from ..db import get_db
from ..middleware.rate_limit import apply_rate_limit
from ..schemas.user import AuthOut, Identity, Login, Register, UserOut
from ..security import (
    create_access_token,
    get_current_user,
    get_optional_user,
    hash_password,
    verify_password,
)
from ..storage import LocalImageStore
from ..utils import to_id, to_object_id, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()
settings = get_settings()

_email = TypeAdapter(EmailStr)

# --------- helpers ----------

def _required(value: Optional[str], message: str) -> str:
    if value is None or not str(value).strip():
        raise HTTPException(status_code=422, detail=message)
    return str(value).strip()

def _to_user_out(doc: Dict[str, Any]) -> Dict[str, Any]:
    out = to_id(doc)
    out.pop("password_hash", None)
    return out

def _auth_payload(message: str, user_id: str) -> Dict[str, str]:
    return {"message": message, "token": create_access_token(user_id), "user_id": user_id}

# -------------------- Registro / login --------------------

@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
async def register(request: Request, payload: Register, db: AsyncIOMotorDatabase = Depends(get_db)):
    apply_rate_limit(request, "5/minute")

    name = _required(payload.name, "O nome é obrigatório!")
    email = _required(payload.email, "O e-mail é obrigatório!")
    phone = _required(payload.phone, "O telefone é obrigatório!")
    password = _required(payload.password, "A senha é obrigatória!")
    _required(payload.confirmpassword, "A confirmação de senha é obrigatória!")
    if payload.password != payload.confirmpassword:
        raise HTTPException(422, "A senha e a confirmação de senha precisam ser iguais!")

    if await db.users.find_one({"email": email}):
        raise HTTPException(422, "Por favor, utilize outro e-mail!")

    now = utcnow()
    doc = {
        "name": name,
        "email": email,
        "phone": phone,
        "image": None,
        "password_hash": hash_password(password),
        "created_at": now,
        "updated_at": now,
    }
    res = await db.users.insert_one(doc)
    logger.info("Usuário %s registrado", res.inserted_id)
    return _auth_payload("Você está autenticado!", str(res.inserted_id))

@router.post("/login", response_model=AuthOut)
async def login(request: Request, payload: Login, db: AsyncIOMotorDatabase = Depends(get_db)):
    apply_rate_limit(request, "10/minute")

    email = _required(payload.email, "O e-mail é obrigatório!")
    password = _required(payload.password, "A senha é obrigatória!")

    user = await db.users.find_one({"email": email})
    if not user:
        raise HTTPException(422, "Não há usuário cadastrado com este e-mail!")
    if not verify_password(password, user.get("password_hash", "")):
        raise HTTPException(422, "Senha inválida!")
    return _auth_payload("Você está autenticado!", str(user["_id"]))

@router.get("/checkUser", response_model=Optional[UserOut])
async def check_user(user: Optional[dict] = Depends(get_optional_user)):
    if user is None:
        return None
    return _to_user_out(user)

# -------------------- Perfil --------------------

@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    if not ObjectId.is_valid(user_id):
        raise HTTPException(422, "Usuário não encontrado!")
    doc = await db.users.find_one({"_id": ObjectId(user_id)}, {"password_hash": 0})
    if not doc:
        raise HTTPException(422, "Usuário não encontrado!")
    return _to_user_out(doc)

@router.patch("/edit/{user_id}", response_model=UserOut)
async def edit_user(
    user_id: str,
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    confirmpassword: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current: Identity = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    # só o próprio usuário edita o perfil
    if user_id != current.id:
        raise HTTPException(422, "Houve um problema ao processar a sua solicitação, tente novamente mais tarde!")

    updates: Dict[str, Any] = {"name": _required(name, "O nome é obrigatório!")}
    email = _required(email, "O e-mail é obrigatório!")
    try:
        _email.validate_python(email)
    except PydanticValidationError:
        raise HTTPException(422, "E-mail inválido!")
    updates["phone"] = _required(phone, "O telefone é obrigatório!")

    other = await db.users.find_one({"email": email, "_id": {"$ne": to_object_id(current.id)}})
    if other:
        raise HTTPException(422, "Por favor, utilize outro e-mail!")
    updates["email"] = email

    if password or confirmpassword:
        if password != confirmpassword:
            raise HTTPException(422, "As senhas não conferem!")
        updates["password_hash"] = hash_password(password)

    if image is not None and image.filename:
        store = LocalImageStore(settings.media_dir, "users")
        refs = await store.save([image])
        updates["image"] = refs[0]

    updates["updated_at"] = utcnow()
    await db.users.update_one({"_id": to_object_id(current.id)}, {"$set": updates})
    doc = await db.users.find_one({"_id": to_object_id(current.id)})
    logger.info("Usuário %s atualizou o perfil", current.id)
    return _to_user_out(doc)
