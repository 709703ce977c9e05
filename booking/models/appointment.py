from sqlalchemy import (
    Column, Integer, ForeignKey, DateTime, Text,
    CheckConstraint, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.orm import relationship
import enum

from ..core.clock import utcnow
from ..core.database import Base

MIN_DURATION_MINUTES = 15

class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"

class Appointment(Base):
    __tablename__ = "appointments"

    # A doctor or a patient can hold only one appointment per start time
    __table_args__ = (
        UniqueConstraint("doctor_id", "date_time", name="uq_appointments_doctor_date_time"),
        UniqueConstraint("patient_id", "date_time", name="uq_appointments_patient_date_time"),
        CheckConstraint(f"duration >= {MIN_DURATION_MINUTES}", name="ck_appointments_min_duration"),
    )

    id = Column(Integer, primary_key=True, index=True)

    patient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Appointment details, date_time is naive UTC
    date_time = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(
        SQLEnum(AppointmentStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=AppointmentStatus.SCHEDULED
    )

    # Naive UTC, same time base as date_time
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    patient = relationship("User", foreign_keys=[patient_id])
    doctor = relationship("User", foreign_keys=[doctor_id])

    def __repr__(self):
        return f"<Appointment(id={self.id}, patient_id={self.patient_id}, doctor_id={self.doctor_id}, date='{self.date_time}')>"
