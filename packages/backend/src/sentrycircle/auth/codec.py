"""Token codecs — the boundary around HMAC signing and base64url handling.

Learn: a token is three dot-separated, unpadded base64url segments:

    base64url({"alg":"HS256","typ":"JWT"}) . base64url(claims) . base64url(sig)

where sig = HMAC-SHA256(secret, "<header>.<payload>"). That's a standard
HS256 JWT, so the same tokens can be produced by our own ~50-line codec
or by PyJWT. Both live behind TokenCodec; TokenService never touches
bytes or signatures directly.

decode() runs its checks in a fixed order and stops at the first failure:
    1. three canonical base64url segments      → InvalidTokenFormat
    2. header/payload are JSON objects, numeric exp → InvalidTokenFormat
    3. exp <= now                               → TokenExpired
    4. constant-time signature comparison       → InvalidSignature

Segments must be canonical: re-encoding the decoded bytes has to give back
the exact segment. Without that, the unused low bits of the last base64
character could be flipped and the token would still verify.
"""

import base64
import binascii
import hashlib
import hmac
import json
import re
from abc import ABC, abstractmethod
from typing import Any

import jwt

ALGORITHM = "HS256"
HEADER = {"alg": ALGORITHM, "typ": "JWT"}

_B64URL = re.compile(r"^[A-Za-z0-9_-]+$")


class TokenError(Exception):
    """Raised when token verification fails."""


class InvalidTokenFormat(TokenError):
    """Malformed token structure or payload."""


class TokenExpired(TokenError):
    """Well-formed token past its expiry."""


class InvalidSignature(TokenError):
    """Well-formed, unexpired token whose signature doesn't match."""


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(segment: str) -> bytes:
    """Decode an unpadded base64url segment, rejecting non-canonical input."""
    if not _B64URL.match(segment) or len(segment) % 4 == 1:
        raise InvalidTokenFormat("Invalid token format")
    try:
        data = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (binascii.Error, ValueError):
        raise InvalidTokenFormat("Invalid token format")
    if b64url_encode(data) != segment:
        raise InvalidTokenFormat("Invalid token format")
    return data


def split_token(token: str) -> tuple[str, str, str]:
    """Split into (header, payload, signature) segments and check their encoding."""
    if not isinstance(token, str):
        raise InvalidTokenFormat("Invalid token format")
    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidTokenFormat("Invalid token format")
    for part in parts:
        b64url_decode(part)
    return parts[0], parts[1], parts[2]


def load_segment(segment: str) -> dict[str, Any]:
    """Decode a segment into a JSON object."""
    try:
        value = json.loads(b64url_decode(segment))
    except (UnicodeDecodeError, ValueError):
        raise InvalidTokenFormat("Invalid token format")
    if not isinstance(value, dict):
        raise InvalidTokenFormat("Invalid token format")
    return value


def check_header(header: dict[str, Any]) -> None:
    if header.get("alg") != ALGORITHM:
        raise InvalidTokenFormat(f"Unsupported algorithm: {header.get('alg')!r}")


def expiry_of(payload: dict[str, Any]) -> float:
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        raise InvalidTokenFormat("Invalid token format")
    return exp


class TokenCodec(ABC):
    """Encodes claims into a signed token and decodes/verifies it back."""

    name: str = ""

    def __init__(self, secret: str):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self.secret = secret

    @abstractmethod
    def encode(self, payload: dict[str, Any]) -> str:
        """Sign payload and return the compact token."""

    @abstractmethod
    def decode(self, token: str, now: int) -> dict[str, Any]:
        """Verify token at time `now` (Unix seconds) and return its payload.

        Raises InvalidTokenFormat, TokenExpired or InvalidSignature.
        """


class HmacTokenCodec(TokenCodec):
    """HS256 implemented directly on hmac + base64."""

    name = "hmac"

    def _sign(self, signing_input: str) -> bytes:
        return hmac.new(
            self.secret.encode("utf-8"),
            signing_input.encode("utf-8"),
            hashlib.sha256,
        ).digest()

    def encode(self, payload: dict[str, Any]) -> str:
        header_seg = b64url_encode(_compact_json(HEADER))
        payload_seg = b64url_encode(_compact_json(payload))
        signature = self._sign(f"{header_seg}.{payload_seg}")
        return f"{header_seg}.{payload_seg}.{b64url_encode(signature)}"

    def decode(self, token: str, now: int) -> dict[str, Any]:
        header_seg, payload_seg, signature_seg = split_token(token)

        check_header(load_segment(header_seg))
        payload = load_segment(payload_seg)

        if expiry_of(payload) <= now:
            raise TokenExpired("Token expired")

        expected = self._sign(f"{header_seg}.{payload_seg}")
        if not hmac.compare_digest(expected, b64url_decode(signature_seg)):
            raise InvalidSignature("Invalid signature")

        return payload


class PyJWTTokenCodec(TokenCodec):
    """HS256 via PyJWT, with the same check order as HmacTokenCodec."""

    name = "pyjwt"

    def encode(self, payload: dict[str, Any]) -> str:
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def decode(self, token: str, now: int) -> dict[str, Any]:
        split_token(token)
        try:
            header = jwt.get_unverified_header(token)
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError:
            raise InvalidTokenFormat("Invalid token format")
        check_header(header)

        if expiry_of(payload) <= now:
            raise TokenExpired("Token expired")

        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                # Expiry was already checked against our clock; other
                # registered claims pass through as opaque payload
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_aud": False,
                    "verify_iss": False,
                    "verify_sub": False,
                    "verify_jti": False,
                },
            )
        except jwt.InvalidSignatureError:
            raise InvalidSignature("Invalid signature")
        except jwt.InvalidTokenError:
            raise InvalidTokenFormat("Invalid token format")


def _compact_json(value: dict[str, Any]) -> bytes:
    return json.dumps(value, separators=(",", ":")).encode("utf-8")


# ─── Registry ──────────────────────────────────────────────

_CODECS: dict[str, type[TokenCodec]] = {
    HmacTokenCodec.name: HmacTokenCodec,
    PyJWTTokenCodec.name: PyJWTTokenCodec,
}


def get_codec(name: str, secret: str) -> TokenCodec:
    """Build a codec by name.

    Raises ValueError if the codec is not registered.
    """
    cls = _CODECS.get(name)
    if not cls:
        available = ", ".join(sorted(_CODECS.keys()))
        raise ValueError(f"Unknown token codec '{name}'. Available: {available}")
    return cls(secret)


def list_codecs() -> list[str]:
    return sorted(_CODECS.keys())
