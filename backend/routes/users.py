# backend/routes/users.py
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.users import User, ROLE_ADMIN
from schemas import user as schemas
from services import users as user_service
from utils.audit import client_ip, write_log
from utils.tokenJWT import role_required

router = APIRouter(prefix="/users", tags=["Users"])

admin_only = role_required(ROLE_ADMIN)


# List all accounts, password hashes stripped
@router.get("", response_model=schemas.UserListEnvelope)
def list_users(db: Session = Depends(get_db), current_user: User = Depends(admin_only)):
    users = user_service.list_users(db)
    return {"success": True, "users": [schemas.UserResponse.model_validate(u) for u in users]}


@router.post("", response_model=schemas.UserEnvelope)
def create_user(
    payload: schemas.UserCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = user_service.create_user(db, payload.email, payload.password, payload.name, payload.role)
    write_log(db, user_id=current_user.id, action="USER_CREATE", resource="users",
              ip=client_ip(request), meta={"id": user.id, "email": user.email})
    return {"success": True, "message": "User created successfully", "user": schemas.UserResponse.model_validate(user)}


# Patch name / role / active flag
@router.put("/{user_id}", response_model=schemas.UserEnvelope)
def update_user(
    user_id: int,
    payload: schemas.UserUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user = user_service.update_user(db, user_id, payload.model_dump(exclude_unset=True))
    write_log(db, user_id=current_user.id, action="USER_UPDATE", resource="users",
              ip=client_ip(request), meta={"id": user.id})
    return {"success": True, "message": "User updated successfully", "user": schemas.UserResponse.model_validate(user)}


@router.put("/{user_id}/password", response_model=schemas.StatusEnvelope)
def reset_password(
    user_id: int,
    payload: schemas.PasswordReset,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    user_service.reset_password(db, user_id, payload.password)
    write_log(db, user_id=current_user.id, action="USER_PASSWORD_RESET", resource="users",
              ip=client_ip(request), meta={"id": user_id})
    return {"success": True, "message": "Password reset successfully"}


@router.delete("/{user_id}", response_model=schemas.StatusEnvelope)
def delete_user(
    user_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(admin_only),
):
    # Prevent self-deletion
    if user_id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete your own account")

    user_service.delete_user(db, user_id)
    write_log(db, user_id=current_user.id, action="USER_DELETE", resource="users",
              ip=client_ip(request), meta={"id": user_id})
    return {"success": True, "message": "User deleted successfully"}
