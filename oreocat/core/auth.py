import asyncio
import time
from typing import Annotated

import httpx
import jwt
from cachetools import TTLCache
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from oreocat.core.errors import AuthError
from oreocat.core.settings import settings
from oreocat.models.session import SessionUser

_jwks_cache: TTLCache = TTLCache(maxsize=1, ttl=3600)
_cache_lock = asyncio.Lock()
# auto_error=False: browsers send the session cookie instead of a header.
_bearer = HTTPBearer(auto_error=False)
# Tracks when we last force-refreshed JWKS; guards against DoS via unknown-kid tokens.
_last_force_refresh_at: float = float("-inf")
_FORCE_REFRESH_INTERVAL = 60.0  # seconds


async def _fetch_jwks(force_refresh: bool = False) -> dict:
    # Fast path: atomic read via .get() avoids KeyError if TTL evicts between check and access
    if not force_refresh:
        cached = _jwks_cache.get("jwks")
        if cached is not None:
            return cached
    async with _cache_lock:
        # Re-check inside lock to handle concurrent waiters
        if not force_refresh:
            cached = _jwks_cache.get("jwks")
            if cached is not None:
                return cached
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(settings.AUTH_JWKS_URL, timeout=10)
            resp.raise_for_status()
        except httpx.HTTPError as err:
            stale = _jwks_cache.get("jwks")
            if stale is not None:
                return stale
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Failed to fetch JWKS from the auth provider",
            ) from err
        data = resp.json()
        _jwks_cache["jwks"] = data
        return data


async def _public_key_for_kid(kid: str, force_refresh: bool = False):
    global _last_force_refresh_at

    jwks = await _fetch_jwks(force_refresh=force_refresh)
    for key in jwks.get("keys", []):
        if key.get("kid") == kid:
            return jwt.algorithms.RSAAlgorithm.from_jwk(key)

    if not force_refresh:
        # Retry once with a fresh JWKS in case the provider recently rotated keys.
        # Rate-limited to _FORCE_REFRESH_INTERVAL to prevent DoS via unknown-kid tokens.
        async with _cache_lock:
            now = time.monotonic()
            if now - _last_force_refresh_at >= _FORCE_REFRESH_INTERVAL:
                _last_force_refresh_at = now
                do_refresh = True
            else:
                do_refresh = False
        if do_refresh:
            return await _public_key_for_kid(kid, force_refresh=True)

    raise AuthError("Unknown signing key")


async def _verification_key(token: str) -> tuple[object, list[str]]:
    """Pick the key and algorithm list for ``token`` from the configured mode."""
    if settings.AUTH_JWKS_URL:
        try:
            header = jwt.get_unverified_header(token)
        except jwt.exceptions.DecodeError as err:
            raise AuthError("Invalid token format") from err
        return await _public_key_for_kid(header.get("kid", "")), ["RS256"]
    if settings.AUTH_SECRET:
        return settings.AUTH_SECRET, ["HS256"]
    raise AuthError("Session verification is not configured")


async def decode_session_token(token: str) -> SessionUser:
    key, algorithms = await _verification_key(token)

    # Verify audience/issuer only when explicitly configured.
    verify_aud = bool(settings.AUTH_AUDIENCE)
    decode_kwargs: dict = {
        "algorithms": algorithms,
        "options": {"verify_aud": verify_aud},
    }
    if verify_aud:
        decode_kwargs["audience"] = settings.AUTH_AUDIENCE
    if settings.AUTH_ISSUER:
        decode_kwargs["issuer"] = settings.AUTH_ISSUER

    try:
        payload = jwt.decode(token, key, **decode_kwargs)
    except jwt.ExpiredSignatureError as err:
        raise AuthError("Token expired") from err
    except jwt.PyJWTError as err:
        raise AuthError("Invalid token") from err

    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Missing subject claim")

    return SessionUser(
        id=str(user_id),
        email=payload.get("email"),
        name=payload.get("name"),
        image=payload.get("picture"),
    )


async def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> SessionUser | None:
    """Session user when a token is presented, None when none is.

    A presented but invalid token is always rejected.
    """
    if credentials is not None:
        token = credentials.credentials
    else:
        token = request.cookies.get(settings.AUTH_SESSION_COOKIE, "")
    if not token:
        return None
    return await decode_session_token(token)


async def get_request_owner(
    user: Annotated[SessionUser | None, Depends(get_optional_user)],
) -> SessionUser | None:
    """Owner whose prefix a storage request uses; enforces AUTH_REQUIRED."""
    if user is None and settings.AUTH_REQUIRED:
        raise AuthError("Authentication required.")
    return user
