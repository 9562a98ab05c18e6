"""Analysis endpoints: url + text + image upload."""

import asyncio
import threading

from fastapi import APIRouter, Depends, File, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from ..engine import RiskEngine
from ..models import AnalysisResult
from ..schemas import TextRequest, UrlRequest

router = APIRouter(prefix="/analyze", tags=["analyze"])

DISCONNECT_POLL = 0.25


def get_engine(request: Request) -> RiskEngine:
    return request.app.state.engine


async def _run_cancellable(request: Request, fn, payload) -> AnalysisResult:
    """Run ``fn`` off the event loop; a client disconnect sets its cancel event."""
    cancel = threading.Event()
    task = asyncio.ensure_future(run_in_threadpool(fn, payload, cancel))
    while True:
        done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL)
        if done:
            return task.result()
        if not cancel.is_set() and await request.is_disconnected():
            cancel.set()


@router.post("/url", response_model=AnalysisResult)
async def analyze_url(body: UrlRequest, request: Request, engine: RiskEngine = Depends(get_engine)):
    return await _run_cancellable(request, engine.analyze_url, body.url)


@router.post("/text", response_model=AnalysisResult)
async def analyze_text(body: TextRequest, request: Request, engine: RiskEngine = Depends(get_engine)):
    return await _run_cancellable(request, engine.analyze_text, body.text)


@router.post("/image", response_model=AnalysisResult)
async def analyze_image(request: Request, file: UploadFile = File(...), engine: RiskEngine = Depends(get_engine)):
    data = await file.read()
    return await _run_cancellable(request, engine.analyze_image, data)
