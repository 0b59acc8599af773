# backend/routes/auth.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from models import users as models
from schemas import user as schemas
from services import users as user_service
from utils.audit import client_ip, write_log
from utils.errors import InvalidCredentials
from utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(tags=["Auth"])


# Check credentials and issue a JWT token
@router.post("/login", response_model=schemas.LoginResponse)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    try:
        user = user_service.login(db, payload.email, payload.password)
    except InvalidCredentials:
        write_log(db, user_id=None, action="LOGIN", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": payload.email})
        raise

    access_token = create_access_token(data={"sub": user.email, "role": user.role})

    write_log(db, user_id=user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": user.email})

    return {
        "success": True,
        "message": "Login successful",
        "user": schemas.UserResponse.model_validate(user),
        "access_token": access_token,
        "token_type": "bearer",
    }


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
