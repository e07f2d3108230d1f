import time
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from codementor.services.pipeline import RAGPipeline, get_pipeline

router = APIRouter(prefix="/health", tags=["Health"])

VERSION = "1.0.0"
_STARTED_AT = time.time()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": _now(),
        "uptime": round(time.time() - _STARTED_AT, 1),
        "version": VERSION
    }


@router.get("/detailed")
async def detailed_health(pipeline: RAGPipeline = Depends(get_pipeline)):
    llm_health = await pipeline.llm.health_check()
    pipeline_status = pipeline.get_status()

    components = {
        "server": {"status": "healthy"},
        "llm": {
            "status": "healthy" if llm_health.get("available") else "unhealthy",
            "details": llm_health
        },
        "rag": {
            "status": "healthy" if pipeline_status.initialized else "degraded",
            "details": pipeline_status.model_dump(mode="json")
        }
    }
    overall = "healthy" if all(c["status"] == "healthy" for c in components.values()) else "degraded"

    return {
        "status": overall,
        "timestamp": _now(),
        "uptime": round(time.time() - _STARTED_AT, 1),
        "components": components
    }


@router.get("/ready")
async def readiness(pipeline: RAGPipeline = Depends(get_pipeline)):
    if pipeline.initialized:
        return {"ready": True}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ready": False, "message": "RAG pipeline not initialized"}
    )


@router.get("/live")
async def liveness():
    return {"alive": True}
