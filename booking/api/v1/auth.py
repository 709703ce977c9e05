from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...core.security import UserRole
from ...api.deps import get_current_user, rate_limit_check, require_role
from ...services.auth_service import AuthService
from ...schemas.auth import UserCreate, UserLogin, UserRegister, UserResponse
from ...models.user import User

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new patient or doctor."""
    auth_service = AuthService(db)
    user = auth_service.register_user(user_data)

    return {
        "success": True,
        "data": UserResponse.model_validate(user).model_dump(mode="json")
    }

@router.post("/login")
def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return an access token."""
    auth_service = AuthService(db)
    token = auth_service.authenticate_user(login_data)

    return {"success": True, "data": token.model_dump(mode="json")}

@router.get("/me")
def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return {
        "success": True,
        "data": UserResponse.model_validate(current_user).model_dump(mode="json")
    }

# Admin routes
@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role([UserRole.ADMIN]))
):
    """Create an account with any role, admins included (admin only)."""
    auth_service = AuthService(db)
    user = auth_service.register_user(user_data)

    return {
        "success": True,
        "data": UserResponse.model_validate(user).model_dump(mode="json")
    }
