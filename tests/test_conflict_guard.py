from datetime import datetime, timedelta, timezone

import pytest

from booking.core.exceptions import ConflictError, ValidationError
from booking.core.security import UserRole
from booking.models.appointment import Appointment
from booking.services.appointment_store import AppointmentStore
from booking.core.clock import to_naive_utc
from booking.services.conflict_guard import ConflictGuard

NOW = datetime(2030, 1, 1, 9, 0)
SLOT = datetime(2030, 1, 1, 10, 0)


@pytest.fixture
def guard(db):
    return ConflictGuard(AppointmentStore(db))


@pytest.fixture
def parties(make_user):
    return {
        "doctor": make_user(UserRole.DOCTOR),
        "other_doctor": make_user(UserRole.DOCTOR),
        "patient": make_user(UserRole.PATIENT),
        "other_patient": make_user(UserRole.PATIENT),
    }


class TestCheckCreate:

    def test_free_slot_passes(self, guard, parties):
        guard.check_create(parties["doctor"].id, parties["patient"].id, SLOT, NOW)

    def test_past_date_rejected(self, guard, parties):
        with pytest.raises(ValidationError):
            guard.check_create(parties["doctor"].id, parties["patient"].id, NOW - timedelta(minutes=1), NOW)

    def test_date_equal_to_now_rejected(self, guard, parties):
        with pytest.raises(ValidationError):
            guard.check_create(parties["doctor"].id, parties["patient"].id, NOW, NOW)

    def test_same_doctor_same_time_conflicts(self, guard, parties, make_appointment):
        make_appointment(parties["patient"], parties["doctor"], SLOT)

        with pytest.raises(ConflictError):
            guard.check_create(parties["doctor"].id, parties["other_patient"].id, SLOT, NOW)

    def test_same_patient_same_time_conflicts(self, guard, parties, make_appointment):
        make_appointment(parties["patient"], parties["doctor"], SLOT)

        with pytest.raises(ConflictError):
            guard.check_create(parties["other_doctor"].id, parties["patient"].id, SLOT, NOW)

    def test_different_time_passes(self, guard, parties, make_appointment):
        make_appointment(parties["patient"], parties["doctor"], SLOT)

        guard.check_create(
            parties["doctor"].id, parties["other_patient"].id, SLOT + timedelta(minutes=30), NOW
        )

    def test_aware_datetime_compared_in_utc(self, guard, parties, make_appointment):
        make_appointment(parties["patient"], parties["doctor"], SLOT)
        same_instant = SLOT.replace(tzinfo=timezone.utc).astimezone(timezone(timedelta(hours=2)))

        with pytest.raises(ConflictError):
            guard.check_create(parties["doctor"].id, parties["other_patient"].id, same_instant, NOW)


class TestCheckUpdate:

    def test_no_new_date_skips_checks(self, guard, parties, make_appointment):
        appointment = make_appointment(parties["patient"], parties["doctor"], SLOT)

        # Even a "now" after the slot is irrelevant when the date is unchanged
        guard.check_update(
            appointment.id, parties["doctor"].id, parties["patient"].id, None, SLOT + timedelta(days=1)
        )

    def test_own_slot_is_excluded(self, guard, parties, make_appointment):
        appointment = make_appointment(parties["patient"], parties["doctor"], SLOT)

        guard.check_update(appointment.id, parties["doctor"].id, parties["patient"].id, SLOT, NOW)

    def test_other_appointment_slot_conflicts(self, guard, parties, make_appointment):
        make_appointment(parties["patient"], parties["doctor"], SLOT)
        moved = make_appointment(parties["other_patient"], parties["doctor"], SLOT + timedelta(hours=1))

        with pytest.raises(ConflictError):
            guard.check_update(moved.id, parties["doctor"].id, parties["other_patient"].id, SLOT, NOW)

    def test_new_date_in_past_rejected(self, guard, parties, make_appointment):
        appointment = make_appointment(parties["patient"], parties["doctor"], SLOT)

        with pytest.raises(ValidationError):
            guard.check_update(
                appointment.id, parties["doctor"].id, parties["patient"].id, NOW - timedelta(hours=1), NOW
            )


class TestStorageConstraint:

    def test_duplicate_insert_becomes_conflict(self, db, parties, make_appointment):
        """Writers that skip the pre-check are still stopped by the unique index."""
        make_appointment(parties["patient"], parties["doctor"], SLOT)
        store = AppointmentStore(db)

        duplicate = Appointment(
            patient_id=parties["other_patient"].id,
            doctor_id=parties["doctor"].id,
            date_time=SLOT,
            duration=15,
            reason="racing request",
        )
        with pytest.raises(ConflictError):
            store.add(duplicate)

        # The session is usable again after the rollback
        assert len(store.list({})) == 1

    def test_patient_axis_enforced_by_storage(self, db, parties, make_appointment):
        make_appointment(parties["patient"], parties["doctor"], SLOT)
        store = AppointmentStore(db)

        with pytest.raises(ConflictError):
            store.add(Appointment(
                patient_id=parties["patient"].id,
                doctor_id=parties["other_doctor"].id,
                date_time=SLOT,
                duration=15,
                reason="racing request",
            ))


def test_to_naive_utc_leaves_naive_values_alone():
    assert to_naive_utc(SLOT) == SLOT
    assert to_naive_utc(SLOT.replace(tzinfo=timezone.utc)) == SLOT
