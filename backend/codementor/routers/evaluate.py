"""
FastAPI router for code evaluation.

`POST /api/evaluate` grades a solution with the model; the syntax and
complexity endpoints are static heuristics and never call it.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from codementor.core.rate_limit import RATE_LIMIT_EVALUATE, RATE_LIMIT_STATIC, limiter
from codementor.domain.models import (
    CodeCheckRequest,
    ComplexityResult,
    EvaluateRequest,
    EvaluationResult,
    SyntaxCheckResult,
)
from codementor.services.pipeline import RAGPipeline, get_pipeline
from codementor.utils.code_analysis import check_syntax, estimate_complexity


router = APIRouter(
    prefix="/api/evaluate",
    tags=["Evaluation"]
)


@router.post(
    "",
    response_model=EvaluationResult,
    summary="Evaluate a candidate solution",
    description="Score the code against the five-criterion rubric (maximum 10 points)."
)
@limiter.limit(RATE_LIMIT_EVALUATE)
async def evaluate_code(
    request: Request,
    body: EvaluateRequest,
    pipeline: RAGPipeline = Depends(get_pipeline),
):
    result = await pipeline.evaluate_code(body.problem, body.code)

    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=result.model_dump(mode="json")
        )
    return result


@router.post(
    "/syntax",
    response_model=SyntaxCheckResult,
    summary="Quick syntax check"
)
@limiter.limit(RATE_LIMIT_STATIC)
async def syntax_check(request: Request, body: CodeCheckRequest) -> SyntaxCheckResult:
    return check_syntax(body.code, body.language)


@router.post(
    "/complexity",
    response_model=ComplexityResult,
    summary="Estimate complexity from code patterns"
)
@limiter.limit(RATE_LIMIT_STATIC)
async def complexity_check(request: Request, body: CodeCheckRequest) -> ComplexityResult:
    return ComplexityResult(complexity=estimate_complexity(body.code))
