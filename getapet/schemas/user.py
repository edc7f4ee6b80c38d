from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime

class Identity(BaseModel):
    """Usuário autenticado, resolvido a partir do token e passado ao motor."""
    id: str
    name: str
    phone: Optional[str] = None
    image: Optional[str] = None

class Register(BaseModel):
    # Campos opcionais aqui: a obrigatoriedade é checada campo a campo no router
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    confirmpassword: Optional[str] = None

class Login(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class UserOut(BaseModel):
    id: str
    name: str
    email: EmailStr
    phone: Optional[str] = None
    image: Optional[str] = None
    created_at: Optional[datetime] = None

class AuthOut(BaseModel):
    message: str
    token: str
    user_id: str
