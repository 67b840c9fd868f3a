from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

Experience = Literal["entry", "junior", "mid", "senior", "lead"]
AssessmentDomain = Literal["technical", "personality", "hr"]
Difficulty = Literal["easy", "medium", "hard"]
Priority = Literal["high", "medium", "low"]


class UserProfile(BaseModel):
    target_role: str | None = Field(default=None, max_length=120)
    interests: list[str] = Field(default_factory=list, max_length=20)


class ResumeAnalysisRequest(BaseModel):
    resume_text: str = Field(min_length=50, max_length=10000)
    user_profile: UserProfile = Field(default_factory=UserProfile)


class ContentGenerationRequest(BaseModel):
    prompt: str = Field(min_length=1, max_length=10000)


class InterviewGenerationRequest(BaseModel):
    role: str = Field(min_length=2, max_length=120)
    experience: Experience = "entry"
    question_count: int = Field(default=5, ge=3, le=8)


class QuestionAnswer(BaseModel):
    question: str = Field(min_length=1, max_length=2000)
    answer: str = Field(default="", max_length=5000)


class InterviewEvaluationRequest(BaseModel):
    role: str = Field(min_length=2, max_length=120)
    experience: Experience = "entry"
    questions_and_answers: list[QuestionAnswer] = Field(min_length=1, max_length=20)


class AssessmentGenerationRequest(BaseModel):
    domain: AssessmentDomain = "technical"
    difficulty: Difficulty = "medium"
    question_count: int = Field(default=5, ge=5, le=10)


class SystemOperationRequest(BaseModel):
    operation: Literal["resume_analysis", "content_generation"]
    test_data: dict = Field(default_factory=dict)


# Result shapes shared by live responses and fallback payloads.


class LearningResource(BaseModel):
    title: str
    url: str | None = None
    type: str | None = None


class LearningStep(BaseModel):
    title: str
    duration: str = ""
    priority: Priority = "medium"
    resources: list[LearningResource] = Field(default_factory=list)


class ResumeAnalysis(BaseModel):
    identified_skills: list[str] = Field(default_factory=list)
    skill_gaps: list[str] = Field(default_factory=list)
    learning_path: list[LearningStep] = Field(default_factory=list)
    overall_score: int = Field(default=60, ge=0, le=100)
    recommendations: str = ""
    fallback_used: bool = False


class GeneratedContent(BaseModel):
    content: str
    fallback_used: bool = False


class InterviewQuestion(BaseModel):
    question: str
    type: str = "behavioral"
    difficulty: str = "medium"
    category: str = "general"
    expected_duration: str = "3-4 minutes"
    follow_up_questions: list[str] = Field(default_factory=list)


class InterviewQuestionsMetadata(BaseModel):
    role: str
    experience: str
    total_questions: int
    estimated_duration: str
    focus_areas: list[str] = Field(default_factory=list)
    fallback_used: bool = False


class InterviewQuestionSet(BaseModel):
    questions: list[InterviewQuestion] = Field(min_length=1)
    metadata: InterviewQuestionsMetadata


class AnswerScore(BaseModel):
    question_index: int = Field(ge=0)
    score: int = Field(ge=0, le=100)
    feedback: str = ""
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class EvaluationSummary(BaseModel):
    strengths: list[str] = Field(default_factory=list)
    areas_for_improvement: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)


class CompetencyAssessment(BaseModel):
    technical: int = Field(default=0, ge=0, le=100)
    communication: int = Field(default=0, ge=0, le=100)
    problem_solving: int = Field(default=0, ge=0, le=100)
    leadership: int = Field(default=0, ge=0, le=100)


class InterviewEvaluation(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    individual_scores: list[AnswerScore] = Field(default_factory=list)
    summary: EvaluationSummary = Field(default_factory=EvaluationSummary)
    competency_assessment: CompetencyAssessment = Field(default_factory=CompetencyAssessment)
    fallback_used: bool = False


class AssessmentQuestion(BaseModel):
    question: str
    options: list[str] = Field(min_length=2)
    correct_answer: str
    explanation: str = ""
    difficulty: str = "medium"
    category: str = "general"


class AssessmentMetadata(BaseModel):
    domain: str
    difficulty: str
    total_questions: int
    estimated_time: str
    fallback_used: bool = False


class AssessmentQuestionSet(BaseModel):
    questions: list[AssessmentQuestion] = Field(min_length=1)
    metadata: AssessmentMetadata
