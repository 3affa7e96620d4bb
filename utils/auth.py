# utils/auth.py
"""
Bearer token verification.

Tokens are issued elsewhere; this service only checks the HS256 signature
and turns the claims into a Principal. Claims used:
id, username, role (administrator | super_user | normal_user),
user_type (system | member) and member_id for member logins.
"""
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, HTTPException, Request
from jose import JWTError, jwt

load_dotenv()
SECRET_KEY = os.getenv("JWT_SECRET")
ALGORITHM = "HS256"

ADMIN_ROLES = ("administrator", "super_user")
USER_TYPE_SYSTEM = "system"
USER_TYPE_MEMBER = "member"


@dataclass(frozen=True)
class Principal:
     """The authenticated caller."""
     id: int
     username: str
     role: Optional[str] = None
     user_type: str = USER_TYPE_SYSTEM
     member_id: Optional[int] = None

     @property
     def is_admin(self) -> bool:
          return self.role in ADMIN_ROLES

     @property
     def is_member(self) -> bool:
          return self.user_type == USER_TYPE_MEMBER

     def owns_member(self, member_id: int) -> bool:
          return self.is_member and self.member_id == member_id


def _secret() -> str:
     # Read at call time so tests and deployments can set JWT_SECRET late
     secret = os.getenv("JWT_SECRET", SECRET_KEY)
     if not secret:
          raise HTTPException(status_code=500, detail="JWT_SECRET is not configured")
     return secret


def principal_from_claims(payload: dict) -> Principal:
     user_id = payload.get("id", payload.get("sub"))
     if user_id is None:
          raise HTTPException(status_code=403, detail="Invalid token")
     user_type = payload.get("user_type", USER_TYPE_SYSTEM)
     member_id = payload.get("member_id")
     if user_type == USER_TYPE_MEMBER and member_id is None:
          member_id = user_id
     return Principal(
          id=int(user_id),
          username=payload.get("username") or str(user_id),
          role=payload.get("role"),
          user_type=user_type,
          member_id=int(member_id) if member_id is not None else None,
     )


# Token Auth Dependency
def verify_token(request: Request) -> Principal:
     auth = request.headers.get("Authorization")
     if not auth or not auth.startswith("Bearer "):
          raise HTTPException(status_code=401, detail="Missing token")
     token = auth.split(" ", 1)[1]
     try:
          payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
     except JWTError:
          raise HTTPException(status_code=403, detail="Invalid token")
     return principal_from_claims(payload)


def require_roles(*roles: str):
     """Dependency factory: the caller's role must be one of ``roles``."""
     def dependency(principal: Principal = Depends(verify_token)) -> Principal:
          if principal.role not in roles:
               raise HTTPException(status_code=403, detail="Insufficient permissions")
          return principal
     return dependency


require_admin = require_roles(*ADMIN_ROLES)


def require_staff(principal: Principal = Depends(verify_token)) -> Principal:
     """Back-office users only; member logins are rejected."""
     if principal.is_member:
          raise HTTPException(status_code=403, detail="Access denied")
     return principal


def require_member(principal: Principal = Depends(verify_token)) -> Principal:
     if not principal.is_member or principal.member_id is None:
          raise HTTPException(status_code=403, detail="Only members can submit payment requests")
     return principal


def create_access_token(
     user_id: int,
     username: str,
     role: Optional[str] = None,
     user_type: str = USER_TYPE_SYSTEM,
     member_id: Optional[int] = None,
     expires_in: timedelta = timedelta(hours=8),
) -> str:
     """Mint a token in the format verify_token expects. Used by tests and tooling."""
     payload = {
          "id": user_id,
          "username": username,
          "role": role,
          "user_type": user_type,
          "exp": datetime.now(timezone.utc) + expires_in,
     }
     if member_id is not None:
          payload["member_id"] = member_id
     return jwt.encode(payload, _secret(), algorithm=ALGORITHM)
