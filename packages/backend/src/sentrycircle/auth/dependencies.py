"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract and
verify the caller's bearer token. Every protected route receives the
verified TokenClaims; nothing here reads the store, because tokens
are self-contained.

Failure mapping:
- no/garbled Authorization header → 401 "Unauthorized"
- TokenError (format, expired, signature) → 401 with the specific reason
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from sentrycircle.auth.jwt import TokenClaims, TokenError, TokenService, get_token_service


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Pull the token out of an 'Authorization: Bearer <token>' header."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[7:].strip()
    return token or None


async def get_current_claims(
    authorization: Optional[str] = Header(None),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """Verified claims for the caller (required — 401 if absent or invalid)."""
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return tokens.verify(token)
    except TokenError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )