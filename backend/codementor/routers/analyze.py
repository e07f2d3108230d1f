"""
FastAPI router for problem analysis and interview sessions.

Analysis modes: quick, detailed (default) and interview. Interview turns
return guidance instead of a solution until the session reaches reveal.
"""
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from codementor.core.rate_limit import RATE_LIMIT_ANALYZE, limiter
from codementor.domain.models import AnalysisResult, AnalyzeRequest, SessionStatus, StatusResponse
from codementor.services.pipeline import RAGPipeline, get_pipeline


# ==================== Router Setup ====================

router = APIRouter(
    prefix="/api/analyze",
    tags=["Analysis"]
)


# ==================== Endpoints ====================

@router.post(
    "",
    response_model=AnalysisResult,
    summary="Analyze a DSA problem",
    description="Retrieve similar problems, run the model and return a structured analysis or interview guidance."
)
@limiter.limit(RATE_LIMIT_ANALYZE)
async def analyze_problem(
    request: Request,
    body: AnalyzeRequest,
    pipeline: RAGPipeline = Depends(get_pipeline),
):
    """
    Analyze a problem statement.

    - `mode="interview"` or the trigger phrase starts a guided session
    - `options.session_id` continues a session with the candidate's reply
    - `options.reveal_solution` skips guidance and returns the full analysis
    """
    result = await pipeline.analyze(body.problem, body.mode, body.options)

    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=result.model_dump(mode="json")
        )
    return result


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Pipeline status"
)
async def get_status(pipeline: RAGPipeline = Depends(get_pipeline)) -> StatusResponse:
    return pipeline.get_status()


@router.get(
    "/session/{session_id}",
    response_model=SessionStatus,
    summary="Get interview session status"
)
async def get_session_status(session_id: str, pipeline: RAGPipeline = Depends(get_pipeline)) -> SessionStatus:
    return pipeline.get_session_status(session_id)


@router.post(
    "/session/{session_id}/reveal",
    response_model=AnalysisResult,
    summary="Reveal the solution",
    description="Produce the full analysis for the session's problem and end the session."
)
@limiter.limit(RATE_LIMIT_ANALYZE)
async def reveal_solution(
    request: Request,
    session_id: str,
    pipeline: RAGPipeline = Depends(get_pipeline),
):
    result = await pipeline.reveal(session_id)

    if not result.success:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=result.model_dump(mode="json")
        )
    return result


@router.delete(
    "/session/{session_id}",
    summary="End interview session"
)
async def end_session(session_id: str, pipeline: RAGPipeline = Depends(get_pipeline)):
    """Ending an unknown session is not an error."""
    existed = pipeline.end_session(session_id)
    return {
        "success": True,
        "message": "Session ended" if existed else "Session not found"
    }
