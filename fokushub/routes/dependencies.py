"""Shared FastAPI dependencies for the platform-facing routes.

The caller's bearer token is forwarded to the platform; without one the
persisted token store is used. Participant routes only serve the
participant the platform reports as signed in.
"""

import threading
from collections import OrderedDict
from typing import Optional

from fastapi import Depends, Header, HTTPException

from fokushub.config import get_settings
from fokushub.services.api_client import ApiClient, UnauthorizedBehavior, build_api_client
from fokushub.services.query_cache import QueryCache
from fokushub.logging_config import get_logger

logger = get_logger(__name__)

CURRENT_USER_KEY = ("/api/auth/me",)

# One query cache per recently seen participant plus one shared by the
# admin screens. Least recently used participant caches are dropped first.
_participant_caches: "OrderedDict[str, QueryCache]" = OrderedDict()
_participant_lock = threading.Lock()
_admin_cache = QueryCache()


def get_bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Extract the bearer token from the Authorization header.

    Raises:
        HTTPException: 401 if the header is present but not a bearer token
    """
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        logger.warning("Rejected malformed Authorization header")
        raise HTTPException(status_code=401, detail="Authorization header must be a bearer token")
    return token.strip()


def get_api_client(token: Optional[str] = Depends(get_bearer_token)) -> ApiClient:
    return build_api_client(token)


def get_current_user_key(user_key: str, api: ApiClient = Depends(get_api_client)) -> str:
    """Check that the participant in the path is the signed-in user.

    Raises:
        HTTPException: 401 without a signed-in user, 403 for another participant
    """
    user = api.query(CURRENT_USER_KEY, on_401=UnauthorizedBehavior.RETURN_NULL)
    if not isinstance(user, dict) or user.get("id") is None:
        raise HTTPException(status_code=401, detail="Not signed in")
    if str(user["id"]) != user_key:
        logger.warning(
            "Rejected access to another participant's drafts",
            extra={"user_key": user_key},
        )
        raise HTTPException(status_code=403, detail="Not allowed to access this participant")
    return user_key


def participant_cache(user_key: str = Depends(get_current_user_key)) -> QueryCache:
    limit = get_settings().participant_cache_limit
    with _participant_lock:
        cache = _participant_caches.get(user_key)
        if cache is None:
            cache = _participant_caches[user_key] = QueryCache()
        _participant_caches.move_to_end(user_key)
        while len(_participant_caches) > limit:
            evicted, _ = _participant_caches.popitem(last=False)
            logger.debug("Dropped query cache", extra={"user_key": evicted})
    return cache


def get_admin_cache() -> QueryCache:
    return _admin_cache


def reset_caches() -> None:
    """Drop every cached query."""
    with _participant_lock:
        _participant_caches.clear()
    _admin_cache.clear()
