from fastapi import APIRouter, Depends, Header, HTTPException, status
from pydantic import ValidationError

from app.api.deps import get_orchestrator
from app.core.security import check_api_key
from app.resilience.orchestrator import OperationOrchestrator
from app.schemas.ai import SystemOperationRequest, UserProfile
from app.schemas.resilience import SystemHealthResponse
from app.services import ai_service

router = APIRouter()


def _auth(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    check_api_key(x_api_key)


@router.get("/system/health", response_model=SystemHealthResponse)
def system_health(orchestrator: OperationOrchestrator = Depends(get_orchestrator)):
    return orchestrator.get_health_snapshot()


@router.post("/system/health/reset")
def reset_health(
    _: None = Depends(_auth),
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.reset_health_monitor()
    return {"success": True, "message": "Health monitor reset successfully"}


@router.post("/system/health/check")
async def check_health(
    _: None = Depends(_auth),
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    healthy = await orchestrator.check_health()
    return {"success": healthy, "health": orchestrator.get_health_snapshot()}


@router.post("/system/monitoring/start")
async def start_monitoring(
    _: None = Depends(_auth),
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    orchestrator.start_monitoring()
    return {"success": True, "monitoring": orchestrator.monitor.monitoring}


@router.post("/system/monitoring/stop")
async def stop_monitoring(
    _: None = Depends(_auth),
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    await orchestrator.stop_monitoring()
    return {"success": True, "monitoring": orchestrator.monitor.monitoring}


@router.post("/system/test-operation")
async def test_operation(
    payload: SystemOperationRequest,
    _: None = Depends(_auth),
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    data = payload.test_data
    if payload.operation == "resume_analysis":
        try:
            profile = UserProfile.model_validate(data.get("user_profile") or {})
        except ValidationError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="test_data.user_profile is invalid.",
            ) from exc
        result = await ai_service.analyze_resume(
            orchestrator,
            resume_text=str(data.get("resume_text") or "Test resume"),
            user_profile=profile,
        )
    else:
        result = await ai_service.generate_content(
            orchestrator,
            prompt=str(data.get("prompt") or "Test prompt"),
        )
    return {"success": True, "data": result, "message": f"{payload.operation} test completed"}


@router.get("/health", summary="Health Check", description="Liveness check for the API process.")
async def health_check():
    return {"status": "healthy"}
