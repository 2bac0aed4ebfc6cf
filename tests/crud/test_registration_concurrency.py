"""
Concurrent registration attempts for the same (event, user) pair, each on
its own session against a file-backed SQLite database.
"""
import asyncio
import threading
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app import crud
from app.core.exceptions import ConflictError
from app.models import Base
from app.models.registration import EventRegistration
from app.schemas.registration import RegistrationCreate
from app.services.payment.intent_bridge import PaymentIntentBridge
from app.services.registration.ledger import Attendee, RegistrationLedger
from app.services.registration.service import RegistrationService
from tests.utils.content import create_event


def run_async(coro):
    """Helper to run async coroutines in sync tests."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'registrations.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


def _run_together(worker, count=2):
    """Start `count` threads at the same moment and collect results and errors."""
    barrier = threading.Barrier(count)
    results, errors = [], []

    def target(index):
        barrier.wait()
        try:
            results.append(worker(index))
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=target, args=(i,)) for i in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


def _request(event_id):
    return RegistrationCreate(
        eventId=event_id, attendeeName="Ada Lovelace", attendeeEmail="ada@example.com"
    )


def test_concurrent_upserts_keep_one_row(session_factory):
    with session_factory() as setup:
        event = create_event(setup, price=Decimal("25.00"))
        event_id = event.id

    def worker(index):
        with session_factory() as session:
            registration = crud.registration.upsert(
                session,
                event_id=event_id,
                user_id="user_1",
                values={
                    "status": "pending",
                    "amount": Decimal("25.00"),
                    "attendee_name": f"Attendee {index}",
                    "attendee_email": "ada@example.com",
                },
                bump_attempts=True,
            )
            return registration.id

    results, errors = _run_together(worker)

    assert errors == []
    assert len(set(results)) == 1
    with session_factory() as check:
        rows = check.query(EventRegistration).all()
        assert len(rows) == 1
        assert rows[0].payment_attempts == 2
        assert rows[0].status == "pending"


def test_concurrent_free_registrations_share_one_row(session_factory):
    with session_factory() as setup:
        event_id = create_event(setup).id

    def worker(index):
        with session_factory() as session:
            service = RegistrationService(session)
            result = run_async(service.register(user_id="user_1", registration_in=_request(event_id)))
            return result.registration_id

    results, errors = _run_together(worker)

    assert errors == []
    assert len(set(results)) == 1
    with session_factory() as check:
        rows = check.query(EventRegistration).all()
        assert len(rows) == 1
        assert rows[0].status == "confirmed"


def test_paid_attempt_racing_a_confirmation_conflicts(session_factory):
    with session_factory() as setup:
        event_id = create_event(setup, price=Decimal("25.00")).id

    with session_factory() as first, session_factory() as second:
        provider = MagicMock()
        provider.create_payment_intent = AsyncMock()
        service = RegistrationService(second, bridge=PaymentIntentBridge(second, provider=provider))

        # The second attempt read "not registered" before the first one was confirmed
        with patch.object(service.ledger, "get_for_user", return_value=None):
            ledger = RegistrationLedger(first)
            registration = ledger.record_pending(
                event_id=event_id,
                user_id="user_1",
                amount=Decimal("25.00"),
                attendee=Attendee(name="Ada Lovelace", email="ada@example.com"),
            )
            ledger.attach_reference(registration.id, "pi_first")
            ledger.confirm_payment(registration.id, "pi_first")

            with pytest.raises(ConflictError):
                run_async(service.register(user_id="user_1", registration_in=_request(event_id)))

    provider.create_payment_intent.assert_not_awaited()
    with session_factory() as check:
        rows = check.query(EventRegistration).all()
        assert len(rows) == 1
        assert rows[0].status == "confirmed"
        assert rows[0].payment_reference == "pi_first"
        assert rows[0].payment_attempts == 1
