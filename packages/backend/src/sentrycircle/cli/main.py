"""SentryCircle operator CLI — mint and inspect tokens, check a deployment.

Usage:
    sentrycircle gen-secret                                   # New signing secret
    sentrycircle token issue -u <user-id> -e a@b.com -r guardian
    sentrycircle token verify <token>                         # Print claims or the failure
    sentrycircle token refresh <token>                        # New token, same identity
    sentrycircle health                                       # Ping a running API
    sentrycircle serve                                        # Run the API under uvicorn

Token commands sign with SENTRYCIRCLE_JWT_SECRET (or --secret), so they only
agree with a server that uses the same secret.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import secrets
import sys
from typing import Optional

import click
import httpx
import uvicorn

from sentrycircle import __version__
from sentrycircle.auth.codec import TokenError, get_codec, list_codecs
from sentrycircle.auth.jwt import TokenService
from sentrycircle.config import settings

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("SENTRYCIRCLE_API_URL", DEFAULT_API_URL).rstrip("/")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when already inside an event loop (e.g. tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _service(ctx: click.Context) -> TokenService:
    opts = ctx.obj
    return TokenService(
        codec=get_codec(opts["codec"], opts["secret"]),
        ttl_seconds=settings.token_ttl_seconds,
    )


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="sentrycircle")
def main():
    """SentryCircle — operator tools for the family safety backend."""


@main.command("gen-secret")
@click.option("--bytes", "n_bytes", default=32, show_default=True, help="Entropy in bytes")
def gen_secret(n_bytes: int):
    """Print a random value suitable for SENTRYCIRCLE_JWT_SECRET."""
    click.echo(secrets.token_urlsafe(n_bytes))


# ---------------------------------------------------------------------------
# sentrycircle token ...
# ---------------------------------------------------------------------------


@main.group()
@click.option(
    "--secret",
    envvar="SENTRYCIRCLE_JWT_SECRET",
    default=lambda: settings.jwt_secret,
    help="Signing secret (default: SENTRYCIRCLE_JWT_SECRET)",
)
@click.option(
    "--codec",
    type=click.Choice(list_codecs()),
    default=lambda: settings.token_codec,
    help="Token codec implementation",
)
@click.pass_context
def token(ctx: click.Context, secret: str, codec: str):
    """Issue, verify and refresh bearer tokens offline."""
    if not secret:
        click.secho("Error: no signing secret configured", fg="red", err=True)
        sys.exit(1)
    ctx.obj = {"secret": secret, "codec": codec}


@token.command("issue")
@click.option("--user-id", "-u", required=True, help="User id to embed")
@click.option("--email", "-e", required=True, help="User email to embed")
@click.option(
    "--role", "-r", type=click.Choice(["guardian", "child"]), default="guardian",
    show_default=True,
)
@click.option("--ttl", type=int, default=None, help="Lifetime in seconds (default: 7 days)")
@click.pass_context
def issue(ctx: click.Context, user_id: str, email: str, role: str, ttl: Optional[int]):
    """Mint a token for a user."""
    svc = _service(ctx)
    click.echo(svc.issue({"userId": user_id, "email": email, "role": role}, ttl))


@token.command("verify")
@click.argument("value")
@click.pass_context
def verify(ctx: click.Context, value: str):
    """Verify a token and print its claims."""
    try:
        claims = _service(ctx).verify(value)
    except TokenError as e:
        click.secho(f"Invalid: {e} ({type(e).__name__})", fg="red", err=True)
        sys.exit(1)
    click.echo(_pretty_json(claims.to_payload()))


@token.command("refresh")
@click.argument("value")
@click.pass_context
def refresh(ctx: click.Context, value: str):
    """Exchange a still-valid token for a new one."""
    try:
        click.echo(_service(ctx).refresh(value))
    except TokenError as e:
        click.secho(f"Cannot refresh: {e} ({type(e).__name__})", fg="red", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# sentrycircle health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Check a running API (SENTRYCIRCLE_API_URL)."""
    _run(_health_impl())


async def _health_impl():
    async with httpx.AsyncClient(base_url=_api_url(), timeout=10.0) as c:
        try:
            r = await c.get("/api/v1/health")
        except httpx.HTTPError as e:
            click.secho(f"API not reachable at {_api_url()}: {e}", fg="red", err=True)
            sys.exit(1)
    data = r.json()
    color = "green" if data.get("status") == "healthy" else "yellow"
    click.secho(f"{data.get('status', 'unknown')} (v{data.get('version', '?')})", fg=color)
    click.echo(f"  store: {data.get('store')} [{data.get('store_backend')}]")


# ---------------------------------------------------------------------------
# sentrycircle serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=lambda: settings.host, help="Bind address")
@click.option("--port", type=int, default=lambda: settings.port, help="Bind port")
@click.option("--reload", is_flag=True, help="Restart on code changes (development)")
def serve(host: str, port: int, reload: bool):
    """Run the API server (SENTRYCIRCLE_* settings apply)."""
    uvicorn.run("sentrycircle.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    main()
