"""Service layer — CRUD logic over the key-value store.

Learn: API routes call services, services call the store and the access
layer. Services raise NotFound / AccessDenied / StoreUnavailable; the app
maps those to 404 / 403 / 503 in one place (main.py).
"""


class NotFound(Exception):
    """Raised when the record a request is about does not exist."""

    def __init__(self, kind: str, detail: str | None = None):
        self.kind = kind
        super().__init__(detail or f"{kind} not found")
