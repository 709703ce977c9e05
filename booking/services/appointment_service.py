from datetime import datetime
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from ..core.exceptions import NotFoundError, UnauthorizedError, ValidationError
from ..core.security import UserRole
from ..models.appointment import Appointment, AppointmentStatus
from ..schemas.appointment import AppointmentCreate, AppointmentUpdate
from .access_policy import AccessPolicy, Requester
from .appointment_store import AppointmentStore
from ..core.clock import to_naive_utc, utcnow
from .conflict_guard import ConflictGuard
from .user_directory import UserDirectory

logger = logging.getLogger(__name__)


class AppointmentService:
    """CRUD for appointments.

    Each operation checks, in order: the appointment exists, the requester
    may touch it, the payload is valid and the time slot is free.
    """

    def __init__(
        self,
        db: Session,
        policy: Optional[AccessPolicy] = None,
        store: Optional[AppointmentStore] = None,
        users: Optional[UserDirectory] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.store = store or AppointmentStore(db)
        self.users = users or UserDirectory(db)
        self.policy = policy or AccessPolicy()
        self.guard = ConflictGuard(self.store)
        self.clock = clock or utcnow

    def list_appointments(self, requester: Requester) -> List[Appointment]:
        scope = self.policy.list_scope(requester)
        return self.store.list(scope)

    def get_appointment(self, requester: Requester, appointment_id: int) -> Appointment:
        appointment = self._get_or_404(appointment_id)

        if not self.policy.can_read(requester, appointment):
            raise UnauthorizedError(
                f"User {requester.id} is not authorized to access this appointment"
            )
        return appointment

    def add_appointment(self, requester: Requester, data: AppointmentCreate) -> Appointment:
        patient_id = self._resolve_patient(requester, data)

        doctor = self.users.get_doctor(data.doctor)
        if not doctor:
            raise NotFoundError(f"No doctor with the id of {data.doctor}")

        date_time = to_naive_utc(data.date_time)
        self.guard.check_create(doctor.id, patient_id, date_time, self.clock())

        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=doctor.id,
            date_time=date_time,
            duration=data.duration,
            reason=data.reason,
            status=AppointmentStatus.SCHEDULED
        )
        self.store.add(appointment)

        logger.info(
            f"Appointment {appointment.id} booked by user {requester.id} "
            f"(doctor={doctor.id}, patient={patient_id}, at={date_time.isoformat()})"
        )
        return appointment

    def update_appointment(
        self,
        requester: Requester,
        appointment_id: int,
        data: AppointmentUpdate
    ) -> Appointment:
        appointment = self._get_or_404(appointment_id)

        if not self.policy.can_write(requester, appointment):
            raise UnauthorizedError(
                f"User {requester.id} is not authorized to update this appointment"
            )

        changes = data.model_dump(exclude_unset=True)

        doctor_id = appointment.doctor_id
        if "doctor" in changes:
            doctor = self.users.get_doctor(changes["doctor"])
            if not doctor:
                raise NotFoundError(f"No doctor with the id of {changes['doctor']}")
            doctor_id = doctor.id

        new_date_time = None
        if "date_time" in changes:
            new_date_time = to_naive_utc(changes["date_time"])

        self.guard.check_update(
            appointment.id, doctor_id, appointment.patient_id, new_date_time, self.clock()
        )

        appointment.doctor_id = doctor_id
        if new_date_time is not None:
            appointment.date_time = new_date_time
        for field in ("duration", "reason", "status"):
            if field in changes:
                setattr(appointment, field, changes[field])

        self.store.save(appointment)
        logger.info(f"Appointment {appointment.id} updated by user {requester.id}: {sorted(changes)}")
        return appointment

    def delete_appointment(self, requester: Requester, appointment_id: int) -> None:
        appointment = self._get_or_404(appointment_id)

        if not self.policy.can_write(requester, appointment):
            raise UnauthorizedError(
                f"User {requester.id} is not authorized to delete this appointment"
            )

        self.store.delete(appointment)
        logger.info(f"Appointment {appointment_id} deleted by user {requester.id}")

    def _get_or_404(self, appointment_id: int) -> Appointment:
        appointment = self.store.get(appointment_id)
        if not appointment:
            raise NotFoundError(f"No appointment with the id of {appointment_id}")
        return appointment

    def _resolve_patient(self, requester: Requester, data: AppointmentCreate) -> int:
        if requester.role != UserRole.ADMIN:
            # Patients always book for themselves
            return requester.id

        if data.patient is None:
            raise ValidationError("Please add a patient for the appointment")
        patient = self.users.get_patient(data.patient)
        if not patient:
            raise NotFoundError(f"No patient with the id of {data.patient}")
        return patient.id
