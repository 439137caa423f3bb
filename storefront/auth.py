from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import threading, uuid, jwt
from passlib.context import CryptContext

from .config import SECRET_KEY, ALGO, ACCESS_EXPIRE_MIN, SESSION_PRUNE_INTERVAL
from .logger import get_logger
from .models import User, UserRole
from .storage import Storage, get_storage

_logger = get_logger(__name__)

pwd_ctx = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer = HTTPBearer(auto_error=False)


def get_password_hash(password: str) -> str:
    return pwd_ctx.hash(password)

def verify_password(password: str, hash_: str) -> bool:
    return pwd_ctx.verify(password, hash_)


class RevokedTokens:
    """Logged-out token ids, kept until the token would have expired anyway."""

    def __init__(self, prune_interval: timedelta = SESSION_PRUNE_INTERVAL):
        self._entries: Dict[str, datetime] = {}
        self._lock = threading.Lock()
        self._prune_interval = prune_interval
        self._last_prune = datetime.now(timezone.utc)

    def revoke(self, jti: str, expires_at: datetime) -> None:
        with self._lock:
            self._entries[jti] = expires_at
        self.prune()

    def is_revoked(self, jti: Optional[str]) -> bool:
        with self._lock:
            return jti in self._entries

    def prune(self, now: Optional[datetime] = None, force: bool = False) -> int:
        now = now or datetime.now(timezone.utc)
        with self._lock:
            if not force and now - self._last_prune < self._prune_interval:
                return 0
            expired = [k for k, exp in self._entries.items() if exp <= now]
            for k in expired:
                del self._entries[k]
            self._last_prune = now
        if expired:
            _logger.debug(f"Pruned {len(expired)} expired session(s)")
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


revoked_tokens = RevokedTokens()


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_EXPIRE_MIN))
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGO)

def decode_token(token: str) -> Dict[str, Any]:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGO])
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    if revoked_tokens.is_revoked(payload.get("jti")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session has ended")
    return payload

def authenticate(storage: Storage, username: str, password: str) -> Optional[User]:
    user = storage.get_user_by_username(username)
    if not user or not verify_password(password, user.password):
        _logger.info(f"Failed login for '{username}'")
        return None
    return user

def revoke_token(token: str) -> None:
    payload = decode_token(token)
    expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    revoked_tokens.revoke(payload["jti"], expires_at)


def get_current_token(cred: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> str:
    if cred is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return cred.credentials

def get_current_user(token: str = Depends(get_current_token),
                     storage: Storage = Depends(get_storage)) -> User:
    payload = decode_token(token)
    uid = int(payload.get("sub", "0"))
    user = storage.get_user(uid)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user

def get_optional_user(cred: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                      storage: Storage = Depends(get_storage)) -> Optional[User]:
    if cred is None:
        return None
    # a stale or garbled token just means browsing anonymously
    try:
        return get_current_user(cred.credentials, storage)
    except HTTPException:
        return None

def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user
