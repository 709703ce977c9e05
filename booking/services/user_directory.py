from typing import Optional
from sqlalchemy.orm import Session

from ..core.security import UserRole
from ..models.user import User


class UserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_with_role(self, user_id: int, role: UserRole) -> Optional[User]:
        """Return the user only if their role is exactly `role`."""
        user = self.get(user_id)
        if user is None or user.role != role:
            return None
        return user

    def get_doctor(self, user_id: int) -> Optional[User]:
        return self.get_with_role(user_id, UserRole.DOCTOR)

    def get_patient(self, user_id: int) -> Optional[User]:
        return self.get_with_role(user_id, UserRole.PATIENT)
