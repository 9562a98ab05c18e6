"""PhishLens – FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config
from .alerts import send_phishing_alert
from .engine import RiskEngine
from .errors import AnalysisCancelled, ValidationError
from .middleware import RateLimitMiddleware
from .routers import analyze, catalog

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(name)-18s  %(levelname)-5s  %(message)s")
logger = logging.getLogger("phishlens")

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: load catalogs and build the engine.

    CatalogUnavailable propagates: the service must not start without its
    reference data.
    """
    owned = False
    if getattr(app.state, "engine", None) is None:
        app.state.engine = RiskEngine()
        owned = True
        if config.ALERT_WEBHOOK_URL:
            app.state.engine.subscribe(send_phishing_alert)
        logger.info("[PhishLens] Engine ready, catalog %s", app.state.engine.catalogs.snapshot().version)

    yield

    if owned:
        app.state.engine.close()
        app.state.engine = None


app = FastAPI(
    title="PhishLens Risk Scoring API",
    description="Explainable phishing risk scoring for URLs, text and images",
    version=VERSION,
    lifespan=lifespan,
)

# ── Middleware ──
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
app.add_middleware(RateLimitMiddleware, global_limit=config.RATE_LIMIT, window=config.RATE_WINDOW)

# ── Routers ──
app.include_router(analyze.router)
app.include_router(catalog.router)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(AnalysisCancelled)
async def cancelled_handler(request: Request, exc: AnalysisCancelled):
    return JSONResponse(status_code=499, content={"detail": "Client closed request"})


@app.get("/", tags=["health"])
def root():
    return {"status": "ok", "version": VERSION, "service": "PhishLens Risk Scoring API"}


@app.get("/health", tags=["health"])
def health_check(request: Request):
    engine = getattr(request.app.state, "engine", None)
    snapshot = engine.catalogs.snapshot() if engine else None
    return {
        "ok": engine is not None,
        "version": VERSION,
        "catalog": snapshot.version if snapshot else None,
        "catalog_stale": engine.catalogs.stale if engine else None,
        "logos": len(snapshot.logos) if snapshot else 0,
        "redirects": config.RESOLVE_REDIRECTS,
        "lookups": config.DOMAIN_LOOKUPS,
    }
