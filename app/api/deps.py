from fastapi import HTTPException, Request, status

from app.resilience.orchestrator import OperationOrchestrator


def get_orchestrator(request: Request) -> OperationOrchestrator:
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="AI service is starting up. Please try again in a moment.",
        )
    return orchestrator
