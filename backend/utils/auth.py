from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from passlib.context import CryptContext
from datetime import datetime, timezone, timedelta
import os

SECRET_KEY = os.environ.get('JWT_SECRET', 'mterp-payroll-2026-k3v8q')
ALGORITHM = "HS256"

# Session length per role (hours)
TOKEN_EXPIRE_HOURS = {
    "owner": 12,
    "director": 12,
    "supervisor": 10,
    "asset_admin": 8,
    "worker": 8,
}
DEFAULT_TOKEN_EXPIRE = 4

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security = HTTPBearer()


def hash_passphrase(passphrase: str) -> str:
    return pwd_context.hash(passphrase)


def create_access_token(data: dict, role: str = "worker") -> str:
    """Tokens are issued by the identity service; this mirrors its claims."""
    to_encode = data.copy()
    expire_hours = TOKEN_EXPIRE_HOURS.get(role, DEFAULT_TOKEN_EXPIRE)
    to_encode["role"] = role
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(hours=expire_hours)
    to_encode["iat"] = datetime.now(timezone.utc)
    to_encode["jti"] = os.urandom(16).hex()
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Decode the bearer token and make sure the account is still active."""
    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    from database import db
    user_id = payload.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")
    user = await db.users.find_one({"id": user_id}, {"_id": 0, "is_active": 1, "full_name": 1})
    if not user or not user.get("is_active", True):
        raise HTTPException(status_code=401, detail="Account is disabled")

    if not payload.get("full_name"):
        payload["full_name"] = user.get("full_name", "")
    return payload


def require_roles(*roles):
    async def checker(user=Depends(get_current_user)):
        if user.get('role') not in roles:
            raise HTTPException(status_code=403, detail="Access denied for your role")
        return user
    return checker
