from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import Settings, settings


def install_cors(app: FastAPI, source: Settings = settings) -> None:
    """Allow the career coach frontends to call the API from the browser."""
    regex = (source.cors_allow_origin_regex or "").strip() or None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(source.cors_allowed_origins),
        allow_origin_regex=regex,
        allow_credentials=source.cors_allow_credentials,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-API-Key"],
    )
