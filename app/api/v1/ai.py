from fastapi import APIRouter, Depends, Request

from app.api.deps import get_orchestrator
from app.core.rate_limit import rate_limit
from app.resilience.orchestrator import OperationOrchestrator
from app.schemas.ai import (
    AssessmentGenerationRequest,
    ContentGenerationRequest,
    InterviewEvaluationRequest,
    InterviewGenerationRequest,
    ResumeAnalysisRequest,
)
from app.schemas.resilience import OperationResult
from app.services import ai_service

router = APIRouter()


@router.post("/ai/resume-analysis", response_model=OperationResult)
@rate_limit()
async def resume_analysis(
    request: Request,
    payload: ResumeAnalysisRequest,
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    _ = request
    return await ai_service.analyze_resume(
        orchestrator,
        resume_text=payload.resume_text,
        user_profile=payload.user_profile,
    )


@router.post("/ai/content", response_model=OperationResult)
@rate_limit()
async def content_generation(
    request: Request,
    payload: ContentGenerationRequest,
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    _ = request
    return await ai_service.generate_content(orchestrator, prompt=payload.prompt)


@router.post("/ai/interview-questions", response_model=OperationResult)
@rate_limit()
async def interview_questions(
    request: Request,
    payload: InterviewGenerationRequest,
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    _ = request
    return await ai_service.generate_interview_questions(
        orchestrator,
        role=payload.role,
        experience=payload.experience,
        question_count=payload.question_count,
    )


@router.post("/ai/interview-evaluation", response_model=OperationResult)
@rate_limit()
async def interview_evaluation(
    request: Request,
    payload: InterviewEvaluationRequest,
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    _ = request
    return await ai_service.evaluate_interview(
        orchestrator,
        role=payload.role,
        experience=payload.experience,
        questions_and_answers=[qa.model_dump() for qa in payload.questions_and_answers],
    )


@router.post("/ai/assessment", response_model=OperationResult)
@rate_limit()
async def assessment(
    request: Request,
    payload: AssessmentGenerationRequest,
    orchestrator: OperationOrchestrator = Depends(get_orchestrator),
):
    _ = request
    return await ai_service.generate_assessment(
        orchestrator,
        domain=payload.domain,
        difficulty=payload.difficulty,
        question_count=payload.question_count,
    )
