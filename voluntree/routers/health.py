"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from voluntree.schemas.common import ApiResponse, ok

router = APIRouter()


@router.get("/health", response_model=ApiResponse[dict])
def health() -> ApiResponse[dict]:
    return ok({"status": "ok"}, "service is healthy")
