from datetime import datetime
from typing import Dict, List, Optional
import logging

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import ConflictError
from ..models.appointment import Appointment

logger = logging.getLogger(__name__)


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when an IntegrityError comes from a unique constraint/index."""
    orig = getattr(exc, "orig", None)
    # PostgreSQL reports SQLSTATE 23505 for unique_violation
    if getattr(orig, "pgcode", None) == "23505":
        return True
    return "unique" in str(orig if orig is not None else exc).lower()


class AppointmentStore:
    """Persistence for appointments on top of a SQLAlchemy session.

    The unique constraints on the appointments table are the final word on
    double-booking. A unique violation at commit time is rolled back and
    raised as ConflictError.
    """

    def __init__(self, db: Session):
        self.db = db

    def get(self, appointment_id: int) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def list(self, scope: Dict[str, int]) -> List[Appointment]:
        return (
            self.db.query(Appointment)
            .filter_by(**scope)
            .order_by(Appointment.date_time, Appointment.id)
            .all()
        )

    def find_collision(
        self,
        doctor_id: int,
        patient_id: int,
        date_time: datetime,
        exclude_id: Optional[int] = None
    ) -> Optional[Appointment]:
        """First appointment sharing date_time with the doctor or the patient."""
        query = self.db.query(Appointment).filter(
            or_(
                and_(Appointment.doctor_id == doctor_id, Appointment.date_time == date_time),
                and_(Appointment.patient_id == patient_id, Appointment.date_time == date_time),
            )
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.first()

    def add(self, appointment: Appointment) -> Appointment:
        self.db.add(appointment)
        self._commit()
        self.db.refresh(appointment)
        return appointment

    def save(self, appointment: Appointment) -> Appointment:
        self._commit()
        self.db.refresh(appointment)
        return appointment

    def delete(self, appointment: Appointment) -> None:
        self.db.delete(appointment)
        self._commit()

    def _commit(self):
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            if is_unique_violation(exc):
                logger.info(f"Double-booking rejected by storage constraint: {exc.orig}")
                raise ConflictError() from exc
            raise
