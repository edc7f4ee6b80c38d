"""
Configuração do pytest para os testes
"""
import copy
import io
import os
import tempfile
from types import SimpleNamespace

# Settings lê o ambiente na importação: precisa vir antes de importar getapet
os.environ.setdefault("MEDIA_DIR", tempfile.mkdtemp(prefix="getapet-media-"))
os.environ.setdefault("JWT_SECRET", "test-secret")

import pytest
from bson import ObjectId
from httpx import AsyncClient, ASGITransport
from starlette.datastructures import Headers, UploadFile

from getapet.errors import DependencyFailure
from getapet.schemas.pet import PetOut, UserSummary
from getapet.schemas.user import Identity
from getapet.services.pets import PetService
from getapet.storage import LocalImageStore
from getapet.utils import utcnow


class InMemoryPetRepository:
    """
    Dublê do PetRepository com as mesmas regras condicionais das consultas
    do MongoDB (dono no filtro de update/delete, adotante único no schedule).
    """

    def __init__(self):
        self.docs: dict[str, dict] = {}
        self._seq = 0
        self.fail_writes = False

    def _out(self, doc):
        if doc is None:
            return None
        data = {k: v for k, v in doc.items() if k != "_seq"}
        return PetOut.model_validate(copy.deepcopy(data))

    def _check(self):
        if self.fail_writes:
            raise DependencyFailure()

    async def create(self, fields, owner: UserSummary, images):
        self._check()
        self._seq += 1
        now = utcnow()
        pet_id = str(ObjectId())
        self.docs[pet_id] = {
            **fields,
            "id": pet_id,
            "available": True,
            "images": list(images),
            "owner": owner.model_dump(),
            "adopters": [],
            "created_at": now,
            "updated_at": now,
            "_seq": self._seq,
        }
        return self._out(self.docs[pet_id])

    async def get(self, pet_id):
        return self._out(self.docs.get(str(pet_id)))

    def _sorted(self, docs):
        return [self._out(d) for d in sorted(docs, key=lambda d: d["_seq"], reverse=True)]

    async def list_all(self):
        return self._sorted(self.docs.values())

    async def list_by_owner(self, user_id):
        return self._sorted(d for d in self.docs.values() if d["owner"]["id"] == user_id)

    async def list_by_adopter(self, user_id):
        return self._sorted(
            d for d in self.docs.values() if any(a["id"] == user_id for a in d["adopters"])
        )

    async def update_owned(self, pet_id, owner_id, fields, new_images):
        self._check()
        doc = self.docs.get(str(pet_id))
        if doc is None or doc["owner"]["id"] != owner_id:
            return None
        doc.update(fields)
        doc["images"].extend(new_images)
        doc["updated_at"] = utcnow()
        return self._out(doc)

    async def delete_owned(self, pet_id, owner_id):
        self._check()
        doc = self.docs.get(str(pet_id))
        if doc is None or doc["owner"]["id"] != owner_id:
            return False
        del self.docs[str(pet_id)]
        return True

    async def add_adopter(self, pet_id, adopter: UserSummary):
        self._check()
        doc = self.docs.get(str(pet_id))
        if (
            doc is None
            or not doc["available"]
            or doc["owner"]["id"] == adopter.id
            or any(a["id"] == adopter.id for a in doc["adopters"])
        ):
            return None
        doc["adopters"].append({"id": adopter.id, "name": adopter.name, "image": adopter.image})
        return self._out(doc)

    async def conclude(self, pet_id):
        self._check()
        doc = self.docs.get(str(pet_id))
        if doc is None:
            return None
        doc["available"] = False
        return self._out(doc)


class InMemoryCollection:
    """
    Dublê mínimo de uma coleção do Motor: igualdade e ``$ne`` no filtro,
    projeção por exclusão e ``$set`` no update.
    """

    def __init__(self):
        self.docs: list[dict] = []

    @staticmethod
    def _matches(doc, query):
        for key, expected in query.items():
            if isinstance(expected, dict) and "$ne" in expected:
                if doc.get(key) == expected["$ne"]:
                    return False
            elif doc.get(key) != expected:
                return False
        return True

    async def find_one(self, query, projection=None):
        for doc in self.docs:
            if self._matches(doc, query):
                found = copy.deepcopy(doc)
                for key, keep in (projection or {}).items():
                    if not keep:
                        found.pop(key, None)
                return found
        return None

    async def insert_one(self, doc):
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def update_one(self, query, update):
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(copy.deepcopy(update.get("$set", {})))
                return SimpleNamespace(matched_count=1, modified_count=1)
        return SimpleNamespace(matched_count=0, modified_count=0)


class InMemoryDb:
    def __init__(self):
        self.users = InMemoryCollection()


@pytest.fixture
def make_upload():
    """Fábrica de uploads em memória no formato que o FastAPI entrega"""
    def _make(filename="rex.jpg", content_type="image/jpeg", data=b"\xff\xd8\xff fake jpeg"):
        return UploadFile(
            file=io.BytesIO(data),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )
    return _make


@pytest.fixture
def u1():
    return Identity(id=str(ObjectId()), name="João Silva", phone="(11) 99999-9999", image="joao.jpg")

@pytest.fixture
def u2():
    return Identity(id=str(ObjectId()), name="Maria Souza", phone="(21) 98888-7777")

@pytest.fixture
def u3():
    return Identity(id=str(ObjectId()), name="Pedro Lima", phone="(31) 97777-6666")

@pytest.fixture
def rex_data():
    return {"name": "Rex", "age": "2", "weight": "10.5", "color": "Marrom",
            "description": "Cachorro dócil, vacinado e adestrado."}

@pytest.fixture
def repo():
    return InMemoryPetRepository()

@pytest.fixture
def image_store(tmp_path):
    return LocalImageStore(str(tmp_path), "pets")

@pytest.fixture
def service(repo, image_store):
    return PetService(repo, image_store)

@pytest.fixture
def test_db():
    """Banco em memória com a coleção users"""
    return InMemoryDb()

@pytest.fixture
async def client(service, test_db):
    """Cliente HTTP com o motor e o banco em memória e rate limiting desativado"""
    from getapet.db import get_db
    from getapet.main import app
    from getapet.services.pets import get_pet_service

    app.state.limiter = None
    app.dependency_overrides[get_pet_service] = lambda: service
    app.dependency_overrides[get_db] = lambda: test_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()

@pytest.fixture
def act_as():
    """Define o usuário autenticado das próximas requisições (None = anônimo)"""
    from getapet.main import app
    from getapet.security import get_current_user

    def _act_as(identity):
        if identity is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = lambda: identity
    return _act_as
