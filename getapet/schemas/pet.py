from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

class UserSummary(BaseModel):
    """Resumo de usuário embutido no Pet (dono ou adotante)."""
    id: str
    name: str
    image: Optional[str] = None
    phone: Optional[str] = None

class PetFields(BaseModel):
    name: str = Field(..., min_length=1)
    age: int = Field(..., ge=0)
    description: Optional[str] = None
    weight: float = Field(..., ge=0)
    color: str = Field(..., min_length=1)
    available: Optional[bool] = None

class PetOut(BaseModel):
    id: str
    name: str
    age: int
    description: Optional[str] = None
    weight: float
    color: str
    available: bool = True
    images: List[str] = []
    owner: UserSummary
    adopters: List[UserSummary] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def adopter_ids(self) -> set[str]:
        return {a.id for a in self.adopters}

    def is_owned_by(self, user_id: str) -> bool:
        return self.owner.id == user_id

class PetMessageOut(BaseModel):
    message: str
    pet: PetOut

class MessageOut(BaseModel):
    message: str

class ScheduleOut(BaseModel):
    message: str
    pet_id: str
    owner: UserSummary
