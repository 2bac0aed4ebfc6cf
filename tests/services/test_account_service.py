import asyncio
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from app import crud
from app.core.exceptions import (
    ForbiddenError,
    InternalError,
    ServiceUnavailableError,
    ValidationError,
)
from app.services.identity.account import AccountService
from app.services.identity.client import PERMANENT_BAN_DURATION, IdentityAdminClient
from tests.utils.auth import create_profile


def run_async(coro):
    """Helper to run async coroutines in sync tests."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _identity(requests, status_code=200, user=None):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"msg": "error"})
        return httpx.Response(200, json=user or {"id": "user_1"})

    return IdentityAdminClient(
        base_url="https://identity.test",
        service_key="service-key",
        transport=httpx.MockTransport(handler),
    )


def test_owner_soft_deletes_account(db):
    profile = create_profile(db, user_id="user_1", email="ada@example.com")
    requests = []

    deleted = run_async(
        AccountService(db, _identity(requests)).soft_delete(
            profile_id="user_1", actor=profile, confirmation="DELETE"
        )
    )

    assert deleted.deleted_at is not None
    assert len(requests) == 1
    assert requests[0].method == "PUT"
    assert requests[0].url.path == "/auth/v1/admin/users/user_1"
    assert json.loads(requests[0].content) == {"ban_duration": PERMANENT_BAN_DURATION}
    assert requests[0].headers["apikey"] == "service-key"


def test_email_confirmation_is_accepted(db):
    profile = create_profile(db, user_id="user_1", email="ada@example.com")

    deleted = run_async(
        AccountService(db, _identity([])).soft_delete(
            profile_id="user_1", actor=profile, confirmation="  ADA@example.com "
        )
    )

    assert deleted.deleted_at is not None


def test_wrong_confirmation_makes_no_remote_call(db):
    profile = create_profile(db, user_id="user_1")
    requests = []

    with pytest.raises(ValidationError):
        run_async(
            AccountService(db, _identity(requests)).soft_delete(
                profile_id="user_1", actor=profile, confirmation="yes please"
            )
        )

    assert requests == []


def test_cannot_delete_someone_else(db):
    actor = create_profile(db, user_id="user_1", email="one@example.com")
    create_profile(db, user_id="user_2", email="two@example.com")

    with pytest.raises(ForbiddenError):
        run_async(
            AccountService(db, _identity([])).soft_delete(
                profile_id="user_2", actor=actor, confirmation="DELETE"
            )
        )


def test_admin_can_delete_someone_else(db):
    admin = create_profile(db, user_id="admin_1", email="admin@example.com", is_admin=True)
    create_profile(db, user_id="user_2", email="two@example.com")

    deleted = run_async(
        AccountService(db, _identity([])).soft_delete(
            profile_id="user_2", actor=admin, confirmation="two@example.com"
        )
    )

    assert deleted.id == "user_2"
    assert deleted.deleted_at is not None


def test_ban_failure_leaves_profile_active(db):
    profile = create_profile(db, user_id="user_1")

    with pytest.raises(ServiceUnavailableError):
        run_async(
            AccountService(db, _identity([], status_code=500)).soft_delete(
                profile_id="user_1", actor=profile, confirmation="DELETE"
            )
        )

    db.refresh(profile)
    assert profile.deleted_at is None


def test_storage_failure_after_ban_is_internal(db):
    profile = create_profile(db, user_id="user_1")

    with patch.object(
        crud.profile,
        "mark_deleted",
        side_effect=OperationalError("UPDATE", {}, Exception("gone")),
    ):
        with pytest.raises(InternalError):
            run_async(
                AccountService(db, _identity([])).soft_delete(
                    profile_id="user_1", actor=profile, confirmation="DELETE"
                )
            )


def test_already_deleted(db):
    profile = create_profile(db, user_id="user_1")
    service = AccountService(db, _identity([]))
    run_async(service.soft_delete(profile_id="user_1", actor=profile, confirmation="DELETE"))

    with pytest.raises(ValidationError):
        run_async(service.soft_delete(profile_id="user_1", actor=profile, confirmation="DELETE"))


def test_unconfigured_identity_provider(db):
    profile = create_profile(db, user_id="user_1")

    with pytest.raises(ServiceUnavailableError):
        run_async(
            AccountService(db, IdentityAdminClient(None, None)).soft_delete(
                profile_id="user_1", actor=profile, confirmation="DELETE"
            )
        )


def test_consistency_detects_drift(db):
    create_profile(db, user_id="user_1")
    banned_until = (datetime.now(timezone.utc) + timedelta(days=365)).isoformat()
    identity = _identity([], user={"id": "user_1", "banned_until": banned_until})

    report = run_async(AccountService(db, identity).check_consistency("user_1"))

    assert report.banned_remotely is True
    assert report.deleted_locally is False
    assert report.consistent is False


def test_consistency_when_in_step(db):
    create_profile(db, user_id="user_1")

    report = run_async(AccountService(db, _identity([])).check_consistency("user_1"))

    assert report.consistent is True
    assert report.banned_remotely is False
