from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_requester, require_role
from ...models.appointment import Appointment
from ...models.user import User
from ...schemas.appointment import AppointmentCreate, AppointmentUpdate, AppointmentResponse
from ...services.access_policy import Requester
from ...services.appointment_service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])

def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    return AppointmentService(db)

def serialize(appointment: Appointment) -> dict:
    return AppointmentResponse.model_validate(appointment).model_dump(mode="json", by_alias=True)

@router.get("")
def get_appointments(
    requester: Requester = Depends(get_requester),
    service: AppointmentService = Depends(get_appointment_service)
):
    """List the appointments visible to the current user."""
    appointments = service.list_appointments(requester)

    return {
        "success": True,
        "count": len(appointments),
        "data": [serialize(a) for a in appointments]
    }

@router.get("/{appointment_id}")
def get_appointment(
    appointment_id: int,
    requester: Requester = Depends(get_requester),
    service: AppointmentService = Depends(get_appointment_service)
):
    appointment = service.get_appointment(requester, appointment_id)
    return {"success": True, "data": serialize(appointment)}

@router.post("", status_code=status.HTTP_201_CREATED)
def add_appointment(
    payload: AppointmentCreate,
    current_user: User = Depends(require_role([UserRole.PATIENT, UserRole.ADMIN])),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Book an appointment. Patients book for themselves."""
    appointment = service.add_appointment(Requester.from_user(current_user), payload)
    return {"success": True, "data": serialize(appointment)}

@router.put("/{appointment_id}")
def update_appointment(
    appointment_id: int,
    payload: AppointmentUpdate,
    requester: Requester = Depends(get_requester),
    service: AppointmentService = Depends(get_appointment_service)
):
    appointment = service.update_appointment(requester, appointment_id, payload)
    return {"success": True, "data": serialize(appointment)}

@router.delete("/{appointment_id}")
def delete_appointment(
    appointment_id: int,
    requester: Requester = Depends(get_requester),
    service: AppointmentService = Depends(get_appointment_service)
):
    service.delete_appointment(requester, appointment_id)
    return {"success": True, "data": {}}
