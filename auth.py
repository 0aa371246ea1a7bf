"""Admin authentication: bcrypt credentials, JWT session tokens, role checks."""

from datetime import timedelta
from typing import Any, Dict, Iterable, Optional

import structlog
from bson import ObjectId
from fastapi import Depends, Request
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

import config
from database import create_document, get_db, now, serialize_doc
from errors import Forbidden, Unauthorized, ValidationError
from schemas import Admin, AdminRole

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ADMIN_ROLES = (AdminRole.ADMIN.value, AdminRole.SUPER_ADMIN.value)
SUPER_ADMIN_ONLY = (AdminRole.SUPER_ADMIN.value,)
MIN_PASSWORD_LENGTH = 6


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = now() + (expires_delta or timedelta(days=config.ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")


def public_admin(admin: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": str(admin["_id"]), "email": admin["email"], "role": admin["role"]}


def create_admin(db: Database, email: str, password: str, role: str = AdminRole.ADMIN.value) -> Dict[str, Any]:
    admin = Admin(email=email, password_hash=hash_password(password), role=role)
    admin_id = create_document(db, "admin", admin)
    return db["admin"].find_one({"_id": admin_id})


def ensure_default_admin(db: Database, email: Optional[str], password: Optional[str]) -> Optional[Dict[str, Any]]:
    """Create the first super admin when the admin collection is empty."""
    if db["admin"].count_documents({}) > 0:
        return None
    if not email or not password:
        logger.warning("No admin account exists and ADMIN_EMAIL/ADMIN_PASSWORD are not set")
        return None
    admin = create_admin(db, email, password, role=AdminRole.SUPER_ADMIN.value)
    logger.info("Default admin account created", email=admin["email"])
    return admin


def authenticate(db: Database, email: str, password: str) -> Dict[str, Any]:
    admin = db["admin"].find_one({"email": email.lower()})
    if not admin:
        raise Unauthorized("Invalid credentials")
    if not admin.get("isActive", True):
        raise Unauthorized("Account is deactivated")
    if not verify_password(password, admin.get("passwordHash", "")):
        logger.info("Failed admin login", email=email.lower())
        raise Unauthorized("Invalid credentials")

    db["admin"].update_one({"_id": admin["_id"]}, {"$set": {"lastLogin": now()}})
    return admin


def issue_token(admin: Dict[str, Any]) -> str:
    return create_access_token({"sub": str(admin["_id"]), "role": admin["role"]})


def change_password(db: Database, admin: Dict[str, Any], current_password: str, new_password: str) -> None:
    stored = db["admin"].find_one({"_id": ObjectId(admin["id"])})
    if not stored or not verify_password(current_password, stored.get("passwordHash", "")):
        raise Unauthorized("Current password is incorrect")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError.for_field("newPassword", "New password must be at least 6 characters")
    db["admin"].update_one(
        {"_id": stored["_id"]},
        {"$set": {"passwordHash": hash_password(new_password), "updatedAt": now()}},
    )


def token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(config.AUTH_COOKIE_NAME)
    if token:
        return token
    authorization = request.headers.get("authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1]
    return None


# Dependency to get current admin

def get_current_admin(request: Request, db: Database = Depends(get_db)) -> Dict[str, Any]:
    token = token_from_request(request)
    if not token:
        raise Unauthorized()
    payload = decode_token(token)
    admin_id = payload.get("sub")
    if not admin_id or not ObjectId.is_valid(admin_id):
        raise Unauthorized("Invalid or expired token")
    admin = db["admin"].find_one({"_id": ObjectId(admin_id)})
    if not admin or not admin.get("isActive", True):
        raise Unauthorized("Admin account is no longer active")
    admin = serialize_doc(admin)
    # Never expose the password hash
    admin.pop("passwordHash", None)
    return admin


def is_authorized(admin: Dict[str, Any], roles: Iterable[str]) -> bool:
    return admin.get("role") in set(roles)


def require_roles(*roles: str):
    """Endpoint dependency: the verified admin, if their role is in ``roles``."""
    allowed = roles or ADMIN_ROLES

    def dependency(admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
        if not is_authorized(admin, allowed):
            raise Forbidden()
        return admin

    return dependency


require_admin = require_roles(*ADMIN_ROLES)
require_super_admin = require_roles(*SUPER_ADMIN_ONLY)
