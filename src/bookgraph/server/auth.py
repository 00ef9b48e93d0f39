from __future__ import annotations

import secrets

from fastapi import Header, HTTPException

from bookgraph.settings import settings


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    """Reject requests without the configured key; open when no key is set."""
    if not settings.api_key:
        return
    if not secrets.compare_digest((x_api_key or "").encode(), settings.api_key.encode()):
        raise HTTPException(status_code=401, detail="invalid API key")
