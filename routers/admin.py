from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, EmailStr, Field
from pymongo.database import Database

import auth
import config
from database import get_db

router = APIRouter(prefix="/admin", tags=["admin"])


# Auth models
class LoginInput(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordInput(BaseModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=auth.MIN_PASSWORD_LENGTH)


@router.post("/login")
def login(payload: LoginInput, response: Response, db: Database = Depends(get_db)):
    admin = auth.authenticate(db, payload.email, payload.password)
    token = auth.issue_token(admin)
    response.set_cookie(
        config.AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=config.IS_PRODUCTION,
        samesite="strict",
        max_age=config.ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return {"success": True, "token": token, "admin": auth.public_admin(admin)}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(config.AUTH_COOKIE_NAME, httponly=True, samesite="strict", secure=config.IS_PRODUCTION)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/check")
def check_auth(admin: Dict[str, Any] = Depends(auth.get_current_admin)):
    return {
        "success": True,
        "authenticated": True,
        "admin": {"id": admin["id"], "email": admin["email"], "role": admin["role"]},
    }


@router.put("/change-password")
def change_password(payload: ChangePasswordInput, db: Database = Depends(get_db),
                    admin: Dict[str, Any] = Depends(auth.get_current_admin)):
    auth.change_password(db, admin, payload.currentPassword, payload.newPassword)
    return {"success": True, "message": "Password changed successfully"}
