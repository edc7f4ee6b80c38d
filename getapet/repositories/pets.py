# getapet/repositories/pets.py
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence
import logging

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from ..errors import DependencyFailure
from ..schemas.pet import PetOut, UserSummary
from ..utils import to_id, utcnow

logger = logging.getLogger(__name__)

# teto das listagens: cada endpoint devolve no máximo os 500 pets mais recentes
LIST_LIMIT = 500
NEWEST_FIRST = [("created_at", -1), ("_id", -1)]


def summary_doc(user: UserSummary, with_phone: bool = True) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"_id": ObjectId(user.id), "name": user.name, "image": user.image}
    if with_phone:
        doc["phone"] = user.phone
    return doc


def to_pet(doc: Optional[Dict[str, Any]]) -> Optional[PetOut]:
    if not doc:
        return None
    return PetOut.model_validate(to_id(doc))


@asynccontextmanager
async def _mongo(op: str):
    try:
        yield
    except PyMongoError as exc:
        logger.exception("Falha no MongoDB durante %s", op)
        raise DependencyFailure() from exc


class PetRepository:
    """
    Acesso à coleção ``pets``.

    Toda mutação é uma única operação condicional sobre um documento, de modo
    que checagem e escrita acontecem atomicamente no MongoDB. Quando o filtro
    não casa, o método devolve ``None``/``False`` e o motor decide o motivo.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db.pets

    async def create(self, fields: Dict[str, Any], owner: UserSummary, images: Sequence[str]) -> PetOut:
        now = utcnow()
        doc = {
            **fields,
            "available": True,
            "images": list(images),
            "owner": summary_doc(owner),
            "adopters": [],
            "created_at": now,
            "updated_at": now,
        }
        async with _mongo("create"):
            res = await self.collection.insert_one(doc)
        doc["_id"] = res.inserted_id
        return to_pet(doc)

    async def get(self, pet_id: ObjectId) -> Optional[PetOut]:
        async with _mongo("get"):
            doc = await self.collection.find_one({"_id": pet_id})
        return to_pet(doc)

    async def _list(self, query: Dict[str, Any]) -> List[PetOut]:
        async with _mongo("list"):
            docs = await self.collection.find(query).sort(NEWEST_FIRST).to_list(LIST_LIMIT)
        return [to_pet(d) for d in docs]

    async def list_all(self) -> List[PetOut]:
        return await self._list({})

    async def list_by_owner(self, user_id: str) -> List[PetOut]:
        return await self._list({"owner._id": ObjectId(user_id)})

    async def list_by_adopter(self, user_id: str) -> List[PetOut]:
        return await self._list({"adopters._id": ObjectId(user_id)})

    async def update_owned(
        self,
        pet_id: ObjectId,
        owner_id: str,
        fields: Dict[str, Any],
        new_images: Sequence[str],
    ) -> Optional[PetOut]:
        update: Dict[str, Any] = {"$set": {**fields, "updated_at": utcnow()}}
        if new_images:
            update["$push"] = {"images": {"$each": list(new_images)}}
        async with _mongo("update"):
            doc = await self.collection.find_one_and_update(
                {"_id": pet_id, "owner._id": ObjectId(owner_id)},
                update,
                return_document=ReturnDocument.AFTER,
            )
        return to_pet(doc)

    async def delete_owned(self, pet_id: ObjectId, owner_id: str) -> bool:
        async with _mongo("delete"):
            res = await self.collection.delete_one({"_id": pet_id, "owner._id": ObjectId(owner_id)})
        return res.deleted_count == 1

    async def add_adopter(self, pet_id: ObjectId, adopter: UserSummary) -> Optional[PetOut]:
        uid = ObjectId(adopter.id)
        async with _mongo("schedule"):
            doc = await self.collection.find_one_and_update(
                {
                    "_id": pet_id,
                    "available": True,
                    "owner._id": {"$ne": uid},
                    "adopters._id": {"$ne": uid},
                },
                {
                    "$push": {"adopters": summary_doc(adopter, with_phone=False)},
                    "$set": {"updated_at": utcnow()},
                },
                return_document=ReturnDocument.AFTER,
            )
        return to_pet(doc)

    async def conclude(self, pet_id: ObjectId) -> Optional[PetOut]:
        # Só toca updated_at na transição real; repetir a conclusão não altera nada
        async with _mongo("conclude"):
            doc = await self.collection.find_one_and_update(
                {"_id": pet_id, "available": True},
                {"$set": {"available": False, "updated_at": utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
            if doc is None:
                doc = await self.collection.find_one({"_id": pet_id})
        return to_pet(doc)
