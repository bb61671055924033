"""
Unit tests for pagination, sorting, permissions, tokens, entity labels and error handlers.
"""

import json
import uuid
from types import SimpleNamespace

import pytest
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from main import app
from intranet.apps.posts.models import Post
from intranet.core.entities import EntityKind, entity_label, entity_models
from intranet.core.permissions import ensure_owner, is_admin, is_owner
from intranet.utils.exception_handlers import (
    integrity_error_handler,
    is_unique_violation,
    rate_limit_exceeded_handler,
)
from intranet.utils.exceptions import NotAuthenticatedException, PermissionDeniedException
from intranet.utils.pagination import PageParams, Pagination
from intranet.utils.security import (
    create_access_token,
    generate_reset_token,
    get_device_info,
    get_token_hash,
    hash_password,
    verify_password,
    verify_token_type,
)


def test_pagination_pages_round_up():
    assert Pagination.build(total=21, page=1, limit=10).pages == 3
    assert Pagination.build(total=20, page=2, limit=10).pages == 2
    assert Pagination.build(total=0, page=1, limit=10).pages == 0


def test_page_params_cap_limit():
    params = PageParams(page=3, limit=1000, sort=None)
    assert params.limit == 100
    assert params.offset == 200


def test_sort_clauses():
    clauses = Post.sort_clauses("title,-created_at,bogus")
    assert [str(c) for c in clauses] == ["posts.title ASC", "posts.created_at DESC"]

    fallback = Post.sort_clauses("bogus")
    assert [str(c) for c in fallback] == ["posts.created_at DESC"]


def test_ownership_gate():
    owner = SimpleNamespace(id=uuid.uuid4(), role="user")
    stranger = SimpleNamespace(id=uuid.uuid4(), role="user")
    admin = SimpleNamespace(id=uuid.uuid4(), role="admin")
    resource = SimpleNamespace(author_id=owner.id, creator_id=None)

    assert is_owner(owner, resource, "author_id")
    assert not is_owner(stranger, resource, "author_id", "creator_id")
    assert is_admin(admin) and not is_admin(None)

    ensure_owner(owner, resource, "author_id")
    ensure_owner(admin, resource, "author_id")
    with pytest.raises(PermissionDeniedException):
        ensure_owner(stranger, resource, "author_id")


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)


def test_access_token_type():
    token = create_access_token(user_id=str(uuid.uuid4()), role="user")
    payload = verify_token_type(token, "access")
    assert payload["role"] == "user"

    with pytest.raises(NotAuthenticatedException):
        verify_token_type(token, "refresh")


def test_reset_token_digest():
    raw, digest, expire = generate_reset_token()
    assert digest == get_token_hash(raw)
    assert raw != digest
    assert expire is not None


def test_device_info():
    ua = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    info = get_device_info(ua)
    assert info["browser"].startswith("Chrome")
    assert info["os"].startswith("Windows")


def test_entity_lookup_table():
    models = entity_models()
    assert models[EntityKind.POST] is Post
    assert EntityKind.SYSTEM not in models


def test_entity_label():
    assert entity_label(None) is None
    assert entity_label(SimpleNamespace(id=1, title="Aviso", name=None)) == "Aviso"
    long = SimpleNamespace(id=1, title=None, name=None, content="x" * 100)
    assert entity_label(long) == "x" * 77 + "..."


def _request(app=None):
    scope = {"type": "http", "method": "POST", "path": "/api/auth/login", "headers": [], "query_string": b""}
    if app is not None:
        scope["app"] = app
    return Request(scope)


async def test_integrity_errors_split_unique_from_other_violations():
    duplicate = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))
    not_null = IntegrityError("UPDATE", {}, Exception("NOT NULL constraint failed: users.name"))
    assert is_unique_violation(duplicate)
    assert not is_unique_violation(not_null)

    conflict = await integrity_error_handler(_request(), duplicate)
    assert conflict.status_code == 409

    invalid = await integrity_error_handler(_request(), not_null)
    assert invalid.status_code == 400
    assert json.loads(invalid.body) == {"success": False, "error": "Invalid or missing field value."}


async def test_rate_limit_uses_error_envelope():
    exc = RateLimitExceeded(SimpleNamespace(limit="5 per 1 minute", error_message=None))
    resp = await rate_limit_exceeded_handler(_request(app), exc)
    assert resp.status_code == 429
    body = json.loads(resp.body)
    assert body["success"] is False
    assert body["error"] == "Rate limit exceeded: 5 per 1 minute"
