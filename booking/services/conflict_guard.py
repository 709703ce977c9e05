from datetime import datetime
from typing import Optional
import logging

from ..core.clock import to_naive_utc
from ..core.exceptions import ConflictError, ValidationError
from .appointment_store import AppointmentStore

logger = logging.getLogger(__name__)


class ConflictGuard:
    """Rejects appointment times in the past or already taken.

    The lookup here gives callers a readable error before the write; the
    store's unique constraints still decide races between concurrent writers.
    """

    def __init__(self, store: AppointmentStore):
        self.store = store

    def check_create(self, doctor_id: int, patient_id: int, date_time: datetime, now: datetime):
        self._check(doctor_id, patient_id, date_time, now)

    def check_update(
        self,
        appointment_id: int,
        doctor_id: int,
        patient_id: int,
        new_date_time: Optional[datetime],
        now: datetime
    ):
        if new_date_time is None:
            return
        self._check(doctor_id, patient_id, new_date_time, now, exclude_id=appointment_id)

    def _check(self, doctor_id, patient_id, date_time, now, exclude_id=None):
        date_time = to_naive_utc(date_time)
        if date_time <= to_naive_utc(now):
            raise ValidationError("Appointment date must be in the future")

        existing = self.store.find_collision(doctor_id, patient_id, date_time, exclude_id=exclude_id)
        if existing is not None:
            logger.info(
                f"Time slot {date_time.isoformat()} taken by appointment {existing.id} "
                f"(doctor={doctor_id}, patient={patient_id})"
            )
            raise ConflictError()
