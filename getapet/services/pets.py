# getapet/services/pets.py
"""
Motor do ciclo de vida do Pet: cadastro, edição, remoção, agendamento de
visitas e conclusão da adoção.

A identidade do usuário é sempre recebida como parâmetro; o serviço não lê
nada do request. Cada mutação termina em uma única escrita condicional no
repositório, e as imagens são gravadas antes dessa escrita.
"""
from typing import Any, List, Mapping, Optional, Sequence
import logging

from fastapi import Depends, UploadFile
from motor.motor_asyncio import AsyncIOMotorDatabase

from ..config import get_settings
from ..db import get_db
from ..errors import AuthenticationError, DependencyFailure, NotFoundError
from ..repositories.pets import PetRepository
from ..schemas.pet import PetOut, ScheduleOut, UserSummary
from ..schemas.user import Identity
from ..storage import LocalImageStore
from ..utils import to_object_id
from .guard import Decision, Operation, decide, enforce
from .validation import validate_pet_fields

logger = logging.getLogger(__name__)


def _summary(identity: Identity) -> UserSummary:
    return UserSummary(**identity.model_dump())


class PetService:
    def __init__(self, repo: PetRepository, images: LocalImageStore, restrict_conclude: bool = False):
        self.repo = repo
        self.images = images
        self.restrict_conclude = restrict_conclude

    def _decide(self, operation: Operation, pet: Optional[PetOut], identity: Optional[Identity]) -> Decision:
        decision = decide(operation, pet, identity, restrict_conclude=self.restrict_conclude)
        if not decision.allowed:
            logger.warning(
                "Operação %s negada no pet %s para %s: %s",
                operation.value,
                pet.id if pet else None,
                identity.id if identity else None,
                decision.reason.value,
            )
        return decision

    async def _load(self, pet_id: str) -> Optional[PetOut]:
        return await self.repo.get(to_object_id(pet_id))

    # ---------- leitura ----------

    async def get(self, pet_id: str) -> PetOut:
        pet = await self._load(pet_id)
        if pet is None:
            raise NotFoundError()
        return pet

    async def list_all(self) -> List[PetOut]:
        return await self.repo.list_all()

    async def list_owned(self, identity: Optional[Identity]) -> List[PetOut]:
        if identity is None:
            raise AuthenticationError()
        return await self.repo.list_by_owner(identity.id)

    async def list_adopted(self, identity: Optional[Identity]) -> List[PetOut]:
        if identity is None:
            raise AuthenticationError()
        return await self.repo.list_by_adopter(identity.id)

    # ---------- mutações ----------

    async def create(
        self,
        identity: Optional[Identity],
        raw: Mapping[str, Any],
        uploads: Sequence[UploadFile] = (),
    ) -> PetOut:
        enforce(self._decide(Operation.create, None, identity))
        fields = validate_pet_fields(raw)
        refs = await self.images.save(uploads)
        try:
            pet = await self.repo.create(
                fields.model_dump(exclude={"available"}), _summary(identity), refs
            )
        except Exception:
            await self.images.discard(refs)
            raise
        logger.info("Pet %s cadastrado por %s", pet.id, identity.id)
        return pet

    async def update(
        self,
        pet_id: str,
        identity: Optional[Identity],
        raw: Mapping[str, Any],
        uploads: Sequence[UploadFile] = (),
    ) -> PetOut:
        oid = to_object_id(pet_id)
        fields = validate_pet_fields(raw, require_available=True)
        pet = await self.repo.get(oid)
        enforce(self._decide(Operation.update, pet, identity))

        refs = await self.images.save(uploads)
        try:
            updated = await self.repo.update_owned(oid, identity.id, fields.model_dump(), refs)
        except Exception:
            await self.images.discard(refs)
            raise
        if updated is None:
            # removido ou trocado entre a leitura e a escrita
            await self.images.discard(refs)
            raise NotFoundError()
        logger.info("Pet %s atualizado por %s (+%d imagens)", updated.id, identity.id, len(refs))
        return updated

    async def delete(self, pet_id: str, identity: Optional[Identity]) -> None:
        oid = to_object_id(pet_id)
        pet = await self.repo.get(oid)
        enforce(self._decide(Operation.delete, pet, identity))
        if not await self.repo.delete_owned(oid, identity.id):
            raise NotFoundError()
        logger.info("Pet %s removido por %s", pet_id, identity.id)

    # ---------- máquina de estados da adoção ----------

    async def schedule(self, pet_id: str, identity: Optional[Identity]) -> ScheduleOut:
        oid = to_object_id(pet_id)
        pet = await self.repo.get(oid)
        enforce(self._decide(Operation.schedule, pet, identity))

        updated = await self.repo.add_adopter(oid, _summary(identity))
        if updated is None:
            # Outra requisição mudou o pet entre a leitura e a escrita
            current = await self.repo.get(oid)
            enforce(self._decide(Operation.schedule, current, identity))
            raise DependencyFailure()

        owner = updated.owner
        logger.info("Visita ao pet %s agendada por %s", updated.id, identity.id)
        return ScheduleOut(
            message=(
                "A visita foi agendada com sucesso, entre em contato com "
                f"{owner.name} pelo telefone {owner.phone or 'não informado'}"
            ),
            pet_id=updated.id,
            owner=owner,
        )

    async def conclude(self, pet_id: str, identity: Optional[Identity]) -> PetOut:
        oid = to_object_id(pet_id)
        pet = await self.repo.get(oid)
        enforce(self._decide(Operation.conclude, pet, identity))
        if not pet.available:
            return pet

        concluded = await self.repo.conclude(oid)
        if concluded is None:
            raise NotFoundError()
        logger.info("Adoção do pet %s concluída por %s", concluded.id, identity.id)
        return concluded


async def get_pet_service(db: AsyncIOMotorDatabase = Depends(get_db)) -> PetService:
    settings = get_settings()
    return PetService(
        PetRepository(db),
        LocalImageStore(settings.media_dir, "pets"),
        restrict_conclude=settings.restrict_conclude,
    )
