"""LocalMart Storefront FastAPI application.

Serves one device's shopper session: the bag, its badge count, and checkout.
Bag timers (re-broadcasts, view polls) run on the server's event loop.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api import bag_router, checkout_router, register_error_handlers
from storefront.config import load_settings
from storefront.domain import storefront
from storefront.scheduling import AsyncioScheduler
from storefront.session import open_session

storefront.init()

_DOMAIN_PREFIXES = ("/bag", "/checkout")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()
    with storefront.domain_context():
        app.state.shopper = open_session(settings, AsyncioScheduler())
    yield
    app.state.shopper.close()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="LocalMart Storefront API",
    description="Shopper bag and checkout",
    lifespan=lifespan,
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
    """Push the storefront domain context for bag and checkout requests."""
    if request.url.path.startswith(_DOMAIN_PREFIXES):
        with storefront.domain_context():
            return await call_next(request)
    return await call_next(request)


app.include_router(bag_router)
app.include_router(checkout_router)
register_error_handlers(app)


@app.get("/health")
async def health():
    shopper = getattr(app.state, "shopper", None)
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "bag_items": len(shopper.bag.snapshot()) if shopper is not None else None,
        }
    )
