"""
Testes do provedor de identidade (tokens) e dos schemas de usuário
"""
import pytest
from bson import ObjectId
from jose import jwt
from fastapi import HTTPException, status
from pydantic import ValidationError

from getapet.schemas.user import Register
from getapet.security import create_access_token, decode_access_token, to_identity
from getapet.utils import utcnow


def test_token_round_trip():
    user_id = str(ObjectId())
    assert decode_access_token(create_access_token(user_id)) == user_id


def test_expired_token_is_rejected():
    token = create_access_token(str(ObjectId()), expires_hours=-1)
    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)
    assert exc.value.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.parametrize("token", ["lixo", create_access_token("nao-e-object-id")])
def test_malformed_token_is_rejected(token):
    with pytest.raises(HTTPException) as exc:
        decode_access_token(token)
    assert exc.value.detail == "Token inválido"


def test_identity_from_user_document():
    oid = ObjectId()
    identity = to_identity({"_id": oid, "name": "João", "phone": "11999999999", "password_hash": "x"})
    assert identity.id == str(oid)
    assert identity.phone == "11999999999"
    assert identity.image is None


def test_register_rejects_invalid_email():
    with pytest.raises(ValidationError):
        Register(name="João", email="nao-e-email", phone="11", password="a", confirmpassword="a")


async def test_protected_route_without_token(client):
    r = await client.patch(f"/pets/schedule/{ObjectId()}")
    assert r.status_code == status.HTTP_401_UNAUTHORIZED


async def test_protected_route_with_bad_token(client):
    r = await client.patch(
        f"/pets/conclude/{ObjectId()}", headers={"Authorization": "Bearer invalido"}
    )
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.json()["detail"] == "Token inválido"


async def test_health(client):
    r = await client.get("/health")
    assert r.json()["status"] == "ok"


def test_timestamps_are_timezone_aware_utc():
    now = utcnow()
    assert now.tzinfo is not None
    assert now.utcoffset().total_seconds() == 0


def test_token_expiry_is_relative_to_utc_now():
    token = create_access_token(str(ObjectId()), expires_hours=2)
    exp = jwt.get_unverified_claims(token)["exp"]
    delta = exp - utcnow().timestamp()
    assert 2 * 3600 - 60 < delta <= 2 * 3600
