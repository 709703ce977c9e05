from dataclasses import dataclass
from typing import Any, Dict, Union

from ..core.security import AuthorizationError, UserRole


@dataclass(frozen=True)
class Requester:
    """Authenticated caller as seen by the appointment rules."""

    id: int
    role: Union[UserRole, str]

    @classmethod
    def from_user(cls, user) -> "Requester":
        return cls(id=user.id, role=user.role)


def _ref_id(ref: Any) -> str:
    """Resolve an id or a loaded user object to its raw identifier."""
    if hasattr(ref, "id"):
        ref = ref.id
    return str(ref)


def _party_id(appointment: Any, party: str) -> str:
    # Prefer the foreign key column; fall back to the joined object
    ref = getattr(appointment, f"{party}_id", None)
    if ref is None:
        ref = getattr(appointment, party)
    return _ref_id(ref)


class AccessPolicy:
    """Ownership rules for appointments.

    Admins see and modify everything. Patients and doctors only see and
    modify appointments they are a party to.
    """

    def is_owner(self, requester: Requester, appointment) -> bool:
        me = _ref_id(requester.id)
        return me in (
            _party_id(appointment, "patient"),
            _party_id(appointment, "doctor"),
        )

    def can_read(self, requester: Requester, appointment) -> bool:
        return requester.role == UserRole.ADMIN or self.is_owner(requester, appointment)

    def can_write(self, requester: Requester, appointment) -> bool:
        # Update and delete follow the same rule as read
        return self.can_read(requester, appointment)

    def list_scope(self, requester: Requester) -> Dict[str, int]:
        """Column filter selecting the appointments a requester may list."""
        if requester.role == UserRole.PATIENT:
            return {"patient_id": requester.id}
        elif requester.role == UserRole.DOCTOR:
            return {"doctor_id": requester.id}
        elif requester.role == UserRole.ADMIN:
            return {}
        raise AuthorizationError(f"Role {requester.role} may not list appointments")
