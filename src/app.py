"""Dispatch FastAPI application.

Serves the order-entry, admin and delivery-agent consoles. Every request
runs inside the dispatch domain context and commands are processed
synchronously.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# PROTEAN_ENV controls which config overlay is applied:
#   - default      → event_processing = "sync"  (change relays fire on commit)
#   - "production" → event_processing = "async" (change relays fire via Engine)
from dispatch.domain import dispatch  # noqa: E402
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from uuid import uuid4

from dispatch.utils.logging import bind_request_context, clear_request_context  # noqa: E402

dispatch.init()

_DOMAIN_PREFIXES = ("/orders", "/assignments", "/delivery-boys", "/shop-payments")


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Dispatch API",
    description="Order fulfillment, delivery assignment and shop settlement",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the dispatch domain context for API requests."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        bind_request_context(
            request_id=request.headers.get("x-request-id") or uuid4().hex,
            method=request.method,
            path=request.url.path,
        )
        try:
            with dispatch.domain_context():
                response = await call_next(request)
        finally:
            clear_request_context()
        return response
    # Health check, docs
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from dispatch.api import (  # noqa: E402
    assignment_router,
    delivery_boy_router,
    order_router,
    register_dispatch_error_handlers,
    shop_payment_router,
)

app.include_router(order_router)
app.include_router(assignment_router)
app.include_router(delivery_boy_router)
app.include_router(shop_payment_router)
register_dispatch_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": dispatch.name})
