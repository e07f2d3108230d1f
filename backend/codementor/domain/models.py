"""
Pydantic models for the CodeMentor API.

Covers corpus documents, parsed model output (structured analysis and code
evaluation), and the request/response schemas exposed by the routers.
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


# ==================== Corpus ====================

class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Document(BaseModel):
    """A reference problem from the curated corpus."""

    id: int
    title: str
    difficulty: Difficulty
    tags: List[str] = Field(default_factory=list)
    problem: str = ""
    approach: str = ""
    complexity: str = ""
    companies: Optional[List[str]] = None
    hints: Optional[List[str]] = None


class Source(BaseModel):
    """A retrieved document as shown to the client."""

    title: str
    score: float
    difficulty: Difficulty
    tags: List[str] = Field(default_factory=list)


# ==================== Parsed Output ====================

class StructuredResponse(BaseModel):
    """Field-by-field record extracted from a free-text analysis."""

    understanding: str = ""
    brute_force: str = ""
    optimized: str = ""
    time_complexity: str = ""
    space_complexity: str = ""
    edge_cases: List[str] = Field(default_factory=list)
    code: str = ""
    dry_run: str = ""
    follow_up_questions: List[str] = Field(default_factory=list)
    common_mistakes: List[str] = Field(default_factory=list)
    variations: List[str] = Field(default_factory=list)


class InterviewGuidance(BaseModel):
    """Unparsed interviewer reply for a non-terminal interview phase."""

    mode: Literal["interview"] = "interview"
    guidance: str
    phase: str


class CriterionScore(BaseModel):
    score: float = 0
    feedback: str = ""
    detected: Optional[str] = None
    missing: Optional[List[str]] = None


class EvaluationBreakdown(BaseModel):
    correctness: CriterionScore = Field(default_factory=CriterionScore)
    time_complexity: CriterionScore = Field(default_factory=CriterionScore)
    space_complexity: CriterionScore = Field(default_factory=CriterionScore)
    code_quality: CriterionScore = Field(default_factory=CriterionScore)
    edge_cases: CriterionScore = Field(default_factory=CriterionScore)


class EvaluationRecord(BaseModel):
    """Rubric evaluation of a candidate solution."""

    score: float = 0
    breakdown: EvaluationBreakdown = Field(default_factory=EvaluationBreakdown)
    suggestions: List[str] = Field(default_factory=list)
    optimal_solution_hint: str = ""
    raw_response: Optional[str] = None


# ==================== Pipeline Results ====================

class ResultMetadata(BaseModel):
    duration_ms: int
    model: Optional[str] = None
    context_documents: int = 0
    tokens_generated: Optional[int] = None


class SessionStatus(BaseModel):
    id: str
    phase: str
    interactions: int
    max_interactions: int
    interactions_remaining: int
    started_at: datetime
    last_activity: datetime
    history_length: int


class AnalysisResult(BaseModel):
    success: bool
    mode: str
    is_interview_mode: bool = False
    structured_response: Optional[Union[InterviewGuidance, StructuredResponse]] = None
    raw_response: Optional[str] = None
    sources: List[Source] = Field(default_factory=list)
    session: Optional[SessionStatus] = None
    metadata: ResultMetadata
    error: Optional[str] = None


class EvaluationResult(BaseModel):
    success: bool
    evaluation: EvaluationRecord
    grade: str
    message: str
    max_score: int = 10
    metadata: ResultMetadata
    error: Optional[str] = None


# ==================== Request Schemas ====================

class AnalyzeOptions(BaseModel):
    session_id: Optional[str] = Field(None, description="Interview session to continue")
    reveal_solution: bool = Field(False, description="Skip guidance and return the full analysis")


class AnalyzeRequest(BaseModel):
    problem: str = Field(
        ...,
        description="Problem statement, or the candidate's reply in an interview session",
        min_length=1,
        max_length=10000,
        examples=["Given an array of integers, return indices of the two numbers that add up to a target"],
    )
    mode: Literal["quick", "detailed", "interview"] = "detailed"
    options: AnalyzeOptions = Field(default_factory=AnalyzeOptions)


class EvaluateRequest(BaseModel):
    problem: str = Field(..., min_length=1, max_length=10000)
    code: str = Field(..., min_length=1, max_length=20000)


class CodeCheckRequest(BaseModel):
    code: str = Field(..., min_length=1, max_length=20000)
    language: str = "java"


class StatusResponse(BaseModel):
    initialized: bool
    document_count: int
    dimension: int
    top_k: int
    similarity_threshold: float
    embedding_model: str
    llm_model: str
    active_sessions: int
    extra: Dict[str, Any] = Field(default_factory=dict)


# ==================== Static Code Checks ====================

class SyntaxIssue(BaseModel):
    line: Optional[int] = None
    message: str


class SyntaxCheckResult(BaseModel):
    success: bool = True
    language: str
    valid: bool
    issues: List[SyntaxIssue] = Field(default_factory=list)


class ComplexityEstimate(BaseModel):
    estimated_time: str = "O(n)"
    estimated_space: str = "O(1)"
    confidence: Literal["low", "medium", "high"] = "medium"
    indicators: List[str] = Field(default_factory=list)


class ComplexityResult(BaseModel):
    success: bool = True
    complexity: ComplexityEstimate
