"""Scan submission endpoints."""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TYPE_CHECKING, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from code_scanner.api.auth import bearer_token
from code_scanner.api.models import ScanPayload, ScanSubmitRequest
from code_scanner.domain.scanning import DuplicateScan
from code_scanner.errors import NotAuthenticatedError, TransientError

if TYPE_CHECKING:
    from code_scanner.containers import AppContainer

router = APIRouter(prefix="/scan", tags=["scan"])

T = TypeVar("T")


async def _guarded(call: Awaitable[T]) -> T:
    try:
        return await call
    except NotAuthenticatedError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc
    except TransientError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc


@router.post("/submit", response_model=None)
async def submit_scan(
    body: ScanSubmitRequest,
    request: Request,
    token: str | None = Depends(bearer_token),
) -> dict[str, object] | JSONResponse:
    """Record a scanned code; duplicates answer 409."""
    container: AppContainer = request.app.state.container
    pipeline = container.pipeline_for_token(token)
    outcome = await _guarded(pipeline.submit(body.data))
    if isinstance(outcome, DuplicateScan):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"success": False, "duplicate": True, "message": outcome.message},
        )
    return {
        "success": True,
        "message": outcome.message,
        "scanId": str(outcome.record.id),
    }


@router.get("/check")
async def check_duplicate(
    data: str, request: Request, token: str | None = Depends(bearer_token)
) -> dict[str, bool]:
    """Report whether a code has already been scanned."""
    container: AppContainer = request.app.state.container
    pipeline = container.pipeline_for_token(token)
    return {"isDuplicate": await _guarded(pipeline.check(data))}


@router.get("/history")
async def scan_history(
    request: Request, token: str | None = Depends(bearer_token)
) -> dict[str, object]:
    """Return the scans recorded by the caller."""
    container: AppContainer = request.app.state.container
    pipeline = container.pipeline_for_token(token)
    records = await _guarded(pipeline.history())
    return {
        "success": True,
        "scans": [
            ScanPayload.from_record(record).model_dump(mode="json", by_alias=True)
            for record in records
        ],
    }
