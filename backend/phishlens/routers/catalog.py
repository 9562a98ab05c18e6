"""Catalog status + hot reload."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..engine import RiskEngine
from ..errors import CatalogUnavailable
from ..schemas import CatalogStatus
from .analyze import get_engine

router = APIRouter(prefix="/catalog", tags=["catalog"])


def _status(engine: RiskEngine, error=None) -> CatalogStatus:
    snap = engine.catalogs.snapshot()
    return CatalogStatus(
        version=snap.version,
        brands=len(snap.brands),
        logos=len(snap.logos),
        stale=engine.catalogs.stale,
        error=error,
    )


@router.get("", response_model=CatalogStatus)
def catalog_status(engine: RiskEngine = Depends(get_engine)):
    return _status(engine)


@router.post("/reload", response_model=CatalogStatus)
def reload_catalog(engine: RiskEngine = Depends(get_engine)):
    try:
        engine.catalogs.reload()
    except CatalogUnavailable as exc:
        return JSONResponse(status_code=503, content=_status(engine, str(exc)).model_dump())
    return _status(engine)
