"""Test bearer token decoding and scope checks."""
import uuid

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from app.core.config import settings
from app.core.security import Principal, get_principal, require_scopes


def bearer(claims: dict, secret: str | None = None) -> HTTPAuthorizationCredentials:
    token = jwt.encode(claims, secret or settings.JWT_SECRET, algorithm=settings.JWT_ALG)
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetPrincipal:

    async def test_local_without_token_is_admin(self, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "local")

        principal = await get_principal(None)

        assert principal.scopes == ["*"]
        assert "admin" in principal.roles

    async def test_missing_token_outside_local_is_rejected(self, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "prod")

        with pytest.raises(HTTPException) as exc:
            await get_principal(None)
        assert exc.value.status_code == 401

    async def test_valid_token_maps_claims(self, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "prod")
        user_id, hospital_id = uuid.uuid4(), uuid.uuid4()

        principal = await get_principal(bearer({
            "sub": str(user_id),
            "hospital_id": str(hospital_id),
            "roles": ["reception"],
            "scopes": ["schedules:read"],
        }))

        assert principal.user_id == user_id
        assert principal.hospital_id == hospital_id
        assert principal.scopes == ["schedules:read"]

    async def test_wrong_secret_is_rejected(self, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "prod")

        with pytest.raises(HTTPException) as exc:
            await get_principal(bearer({"sub": str(uuid.uuid4())}, secret="not-the-secret"))
        assert exc.value.status_code == 401

    async def test_non_uuid_subject_is_rejected(self, monkeypatch):
        monkeypatch.setattr(settings, "ENV", "prod")

        with pytest.raises(HTTPException) as exc:
            await get_principal(bearer({"sub": "reception-desk-3"}))
        assert exc.value.status_code == 401


class TestRequireScopes:

    def test_wildcard_passes(self):
        dep = require_scopes("schedules:write")
        principal = Principal(user_id=uuid.uuid4(), scopes=["*"])

        assert dep(principal) is principal

    def test_missing_scope_is_forbidden(self):
        dep = require_scopes("schedules:write")

        with pytest.raises(HTTPException) as exc:
            dep(Principal(user_id=uuid.uuid4(), scopes=["schedules:read"]))
        assert exc.value.status_code == 403

    def test_all_scopes_required(self):
        dep = require_scopes("appointments:read", "appointments:write")
        principal = Principal(user_id=uuid.uuid4(), scopes=["appointments:write", "appointments:read"])

        assert dep(principal) is principal
