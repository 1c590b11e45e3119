"""Auth API — registration, login, token verification and refresh.

Learn: Routes for account and token lifecycle:
- POST /auth/register → create a user, returns {user, token}
- POST /auth/login → email/password → {user, token}
- POST /auth/verify → {token} → {valid, payload}
- POST /auth/refresh → still-valid token → new token
- GET /auth/me → current user's record

Users are stored under user:<email>, with userId:<id> → email as a
reverse index. The password hash never leaves the server.
"""

from typing import Literal

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from sentrycircle.auth.dependencies import get_current_claims
from sentrycircle.auth.jwt import TokenClaims, TokenError, TokenService, get_token_service
from sentrycircle.auth.password import hash_password, needs_upgrade, verify_password
from sentrycircle.store import keys
from sentrycircle.store.kv import KVStore, get_store
from sentrycircle.store.lookup import Found, find_user
from sentrycircle.store.records import User

logger = structlog.get_logger()

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(min_length=8)
    role: Literal["child", "guardian"]


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenRequest(BaseModel):
    token: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    user: dict
    token: str


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    store: KVStore = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
):
    """Create a new user account."""
    if await store.get(keys.user(body.email)) is not None:
        raise HTTPException(status_code=409, detail="User already exists")

    user = User(
        email=body.email,
        name=body.name,
        role=body.role,
        password_hash=hash_password(body.password),
    )
    await store.put(keys.user(user.email), user.to_store())
    await store.put(keys.user_email(user.id), user.email)

    logger.info("auth.registered", user_id=user.id, role=user.role)
    token = tokens.issue({"userId": user.id, "email": user.email, "role": user.role})
    return AuthResponse(user=user.public(), token=token)


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    store: KVStore = Depends(get_store),
    tokens: TokenService = Depends(get_token_service),
):
    """Login with email and password → token."""
    found = await find_user(store, body.email)
    if not isinstance(found, Found):
        raise HTTPException(status_code=401, detail="Invalid email or password")
    user = found.record

    if not verify_password(body.password, user.password_hash):
        logger.info("auth.login_failed", user_id=user.id)
        raise HTTPException(status_code=401, detail="Invalid email or password")

    # Auto-upgrade legacy SHA-256 hashes to bcrypt on successful login
    if needs_upgrade(user.password_hash):
        user.password_hash = hash_password(body.password)
        await store.put(keys.user(user.email), user.to_store())
        logger.info("auth.password_upgraded", user_id=user.id)

    token = tokens.issue({"userId": user.id, "email": user.email, "role": user.role})
    return AuthResponse(user=user.public(), token=token)


# ─── Verify / Refresh ───────────────────────────────────


@router.post("/verify")
async def verify(
    body: TokenRequest,
    tokens: TokenService = Depends(get_token_service),
):
    """Check a token and return its claims."""
    try:
        claims = tokens.verify(body.token)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return {"valid": True, "payload": claims.to_payload()}


@router.post("/refresh")
async def refresh(
    body: TokenRequest,
    tokens: TokenService = Depends(get_token_service),
):
    """Exchange a still-valid token for a new one."""
    try:
        claims = tokens.verify(body.token)
        token = tokens.refresh(body.token)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    logger.info("auth.token_refreshed", user_id=claims.user_id)
    return {"token": token}


# ─── Current user ───────────────────────────────────────


@router.get("/me")
async def get_me(
    claims: TokenClaims = Depends(get_current_claims),
    store: KVStore = Depends(get_store),
):
    """Get the current authenticated user's info."""
    found = await find_user(store, claims.email)
    if not isinstance(found, Found) or found.record.id != claims.user_id:
        raise HTTPException(status_code=404, detail="User not found")
    return found.record.public()
