from __future__ import annotations

from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware

from src.infrastructure.config import ExtensionConfig

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "X-DNS-Prefetch-Control": "off",
    "Referrer-Policy": "no-referrer",
}


def add_default_middlewares(app: FastAPI, config: ExtensionConfig) -> None:
    # Development/staging default to local frontend origins, production to "*",
    # unless CORS_ALLOW_LIST names the origins explicitly.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.cors_allow_list),
        allow_methods=["GET", "POST", "HEAD"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
