"""HTTP route definitions for the control API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from app.schemas import AgentStatus, ReloadResponse
from services.orchestrator import Orchestrator

router = APIRouter()


def get_orchestrator(request: Request) -> Orchestrator:
    return request.app.state.orchestrator


@router.get(
    "/status",
    response_model=AgentStatus,
    summary="Report the orchestrator state and its live sensors.",
)
async def get_status(
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> AgentStatus:
    return AgentStatus.from_orchestrator(orchestrator)


@router.post(
    "/reload",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=ReloadResponse,
    summary="Trigger a manifest reload.",
)
async def trigger_reload(
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> ReloadResponse:
    orchestrator.reload()
    return ReloadResponse()


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
