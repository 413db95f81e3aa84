import hashlib
import logging
import time
from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

TOKEN_CACHE_TTL_SEC = 60
TOKEN_CACHE_MAX_SIZE = 500


class TokenCache:
    """Verified identities keyed by token hash; feeds fire many parallel requests with one token"""

    def __init__(self, ttl: float = TOKEN_CACHE_TTL_SEC, max_size: int = TOKEN_CACHE_MAX_SIZE):
        self.ttl = ttl
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self.key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        identity, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return identity

    def put(self, token: str, identity: Dict[str, Any]) -> None:
        now = time.monotonic()
        if len(self._entries) >= self.max_size:
            self._entries = {k: v for k, v in self._entries.items() if v[1] > now}
        if len(self._entries) < self.max_size:
            self._entries[self.key(token)] = (identity, now + self.ttl)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


token_cache = TokenCache()


def clear_auth_cache() -> None:
    token_cache.clear()


def _identity(user: Any) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "user_metadata": user.user_metadata or {},
        "app_metadata": user.app_metadata or {},
    }


class AuthService:
    """Verifies Supabase access tokens; sign-up and login stay with Supabase Auth on the client"""

    def __init__(self, supabase: Client, cache: TokenCache = token_cache):
        self.supabase = supabase
        self.cache = cache

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Identity behind a bearer token, 401 when Supabase rejects it"""
        cached = self.cache.get(token)
        if cached is not None:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            logger.debug(f"Token verification failed: {error_msg}")
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        identity = _identity(user_response.user)
        self.cache.put(token, identity)
        return identity
