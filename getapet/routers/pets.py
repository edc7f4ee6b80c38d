from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from typing import List, Optional

from ..middleware.rate_limit import apply_rate_limit
from ..schemas.pet import MessageOut, PetMessageOut, PetOut, ScheduleOut
from ..schemas.user import Identity
from ..security import get_current_user
from ..services.pets import PetService, get_pet_service

router = APIRouter()


def _uploads(images: Optional[List[UploadFile]]) -> List[UploadFile]:
    # navegadores enviam uma parte vazia quando nenhum arquivo é escolhido
    return [f for f in images or [] if f.filename]


@router.post("/create", response_model=PetMessageOut, status_code=status.HTTP_201_CREATED)
async def create_pet(
    request: Request,
    name: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current: Identity = Depends(get_current_user),
    service: PetService = Depends(get_pet_service),
):
    apply_rate_limit(request, "10/minute")
    raw = {"name": name, "age": age, "description": description, "weight": weight, "color": color}
    pet = await service.create(current, raw, _uploads(images))
    return {"message": "Pet cadastrado com sucesso!", "pet": pet}


@router.get("", response_model=List[PetOut])
async def list_pets(service: PetService = Depends(get_pet_service)):
    return await service.list_all()


@router.get("/mypets", response_model=List[PetOut])
async def my_pets(
    current: Identity = Depends(get_current_user),
    service: PetService = Depends(get_pet_service),
):
    return await service.list_owned(current)


@router.get("/myadoptions", response_model=List[PetOut])
async def my_adoptions(
    current: Identity = Depends(get_current_user),
    service: PetService = Depends(get_pet_service),
):
    return await service.list_adopted(current)


@router.get("/{pet_id}", response_model=PetOut)
async def get_pet(pet_id: str, service: PetService = Depends(get_pet_service)):
    return await service.get(pet_id)


@router.patch("/schedule/{pet_id}", response_model=ScheduleOut)
async def schedule_visit(
    request: Request,
    pet_id: str,
    current: Identity = Depends(get_current_user),
    service: PetService = Depends(get_pet_service),
):
    apply_rate_limit(request, "20/minute")
    return await service.schedule(pet_id, current)


@router.patch("/conclude/{pet_id}", response_model=PetMessageOut)
async def conclude_adoption(
    pet_id: str,
    current: Identity = Depends(get_current_user),
    service: PetService = Depends(get_pet_service),
):
    pet = await service.conclude(pet_id, current)
    return {"message": "Parabéns! O ciclo de adoção foi finalizado com sucesso!", "pet": pet}


@router.patch("/{pet_id}", response_model=PetMessageOut)
async def update_pet(
    pet_id: str,
    name: Optional[str] = Form(None),
    age: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    weight: Optional[str] = Form(None),
    color: Optional[str] = Form(None),
    available: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    current: Identity = Depends(get_current_user),
    service: PetService = Depends(get_pet_service),
):
    raw = {
        "name": name,
        "age": age,
        "description": description,
        "weight": weight,
        "color": color,
        "available": available,
    }
    pet = await service.update(pet_id, current, raw, _uploads(images))
    return {"message": "Pet atualizado com sucesso!", "pet": pet}


@router.delete("/{pet_id}", response_model=MessageOut)
async def delete_pet(
    pet_id: str,
    current: Identity = Depends(get_current_user),
    service: PetService = Depends(get_pet_service),
):
    await service.delete(pet_id, current)
    return {"message": "Pet removido com sucesso!"}
