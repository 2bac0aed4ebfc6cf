# app/crud/crud_registration.py
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from .base import CRUDBase
from app.models.registration import EventRegistration
from app.schemas.registration import RegistrationCreate, RegistrationStatus

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class CRUDRegistration(CRUDBase[EventRegistration, RegistrationCreate, RegistrationCreate]):
    def get_by_event_and_user(
        self, db: Session, *, event_id: str, user_id: str
    ) -> EventRegistration | None:
        return (
            db.query(self.model)
            .filter(self.model.event_id == event_id, self.model.user_id == user_id)
            .first()
        )

    def get_multi_by_user(self, db: Session, *, user_id: str) -> List[EventRegistration]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc(), self.model.id)
            .all()
        )

    def count_confirmed(self, db: Session, *, event_id: str) -> int:
        return (
            db.query(self.model)
            .filter(
                self.model.event_id == event_id,
                self.model.status == RegistrationStatus.confirmed.value,
            )
            .count()
        )

    def upsert(
        self,
        db: Session,
        *,
        event_id: str,
        user_id: str,
        values: Dict[str, Any],
        bump_attempts: bool = False,
    ) -> EventRegistration:
        """
        Insert-or-update the single (event, user) row and commit.

        Concurrent attempts for the same pair serialize on the unique
        constraint. A row that is already confirmed is never overwritten;
        the caller sees it unchanged in the returned object.
        """
        insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
        if insert is None:
            raise NotImplementedError(
                f"Registration upsert is not supported on {db.get_bind().dialect.name}"
            )

        table = self.model.__table__
        stmt = insert(table).values(
            id=f"reg_{uuid.uuid4().hex[:12]}",
            event_id=event_id,
            user_id=user_id,
            payment_attempts=1 if bump_attempts else 0,
            **values,
        )
        set_ = dict(values)
        set_["updated_at"] = func.now()
        if bump_attempts:
            set_["payment_attempts"] = table.c.payment_attempts + 1
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.event_id, table.c.user_id],
            set_=set_,
            where=table.c.status != RegistrationStatus.confirmed.value,
        )
        db.execute(stmt)
        db.commit()

        registration = self.get_by_event_and_user(db, event_id=event_id, user_id=user_id)
        # Pick up the committed row even if an older copy is in the identity map
        db.refresh(registration)
        return registration

    def transition(
        self,
        db: Session,
        *,
        registration_id: str,
        from_statuses: Iterable[RegistrationStatus],
        values: Dict[str, Any],
        payment_reference: Optional[str] = None,
    ) -> bool:
        """
        Conditional status write. Applies `values` only while the row is in
        one of `from_statuses` (and, if given, still carries
        `payment_reference`). Returns whether a row changed.
        """
        stmt = (
            update(self.model)
            .where(
                self.model.id == registration_id,
                self.model.status.in_([s.value for s in from_statuses]),
            )
            .values(**values)
            .execution_options(synchronize_session="fetch")
        )
        if payment_reference is not None:
            stmt = stmt.where(self.model.payment_reference == payment_reference)
        result = db.execute(stmt)
        db.commit()
        return result.rowcount > 0

    def attach_payment_reference(
        self, db: Session, *, registration_id: str, payment_reference: str
    ) -> bool:
        """Second, independent write after intent creation. Pending rows only."""
        return self.transition(
            db,
            registration_id=registration_id,
            from_statuses=[RegistrationStatus.pending],
            values={"payment_reference": payment_reference},
        )

    def find_unattached_pending(
        self, db: Session, *, stale_before: datetime
    ) -> List[EventRegistration]:
        """
        Pending rows that never received a payment reference and were last
        written before `stale_before`: the process stopped between the
        pending commit and the intent attachment.
        """
        return (
            db.query(self.model)
            .filter(
                self.model.status == RegistrationStatus.pending.value,
                self.model.payment_reference.is_(None),
                self.model.amount > Decimal("0"),
                self.model.updated_at < stale_before,
            )
            .order_by(self.model.updated_at)
            .all()
        )


registration = CRUDRegistration(EventRegistration)
