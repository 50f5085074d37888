from __future__ import annotations

from fastapi import APIRouter

from api.constants import API_VERSION

router = APIRouter()


@router.get("/healthz")
async def healthz():
    return {"status": "ok"}


@router.get("/api/version")
async def version():
    return {"version": API_VERSION}
