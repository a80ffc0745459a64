"""LLM-assisted authoring endpoints."""

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter

from services.assist import AssistService

from ..dependencies import get_assist_service
from ..schemas import (
    AssistRequest,
    SimilarityRequest,
    SummarizeRequest,
    ValidateRootCauseRequest,
    envelope,
)


def create_router(limiter: Limiter, ai_rate: str) -> APIRouter:
    """Authoring endpoints, each limited per client by ``limiter``."""
    router = APIRouter(prefix="/api/ai", tags=["ai"])
    ai_limit = limiter.limit(ai_rate)

    @router.post("/similarity")
    @ai_limit
    async def find_similar(request: Request, payload: SimilarityRequest,
                           service: AssistService = Depends(get_assist_service)):
        return envelope(await service.find_similar(payload.title, payload.symptoms))

    @router.post("/assist")
    @ai_limit
    async def assist_field(request: Request, payload: AssistRequest,
                           service: AssistService = Depends(get_assist_service)):
        return envelope(await service.assist(payload.field, payload.value, payload.context))

    @router.post("/validate-rootcause")
    @ai_limit
    async def validate_root_cause(request: Request, payload: ValidateRootCauseRequest,
                                  service: AssistService = Depends(get_assist_service)):
        return envelope(await service.validate_root_cause(payload.root_cause, payload.symptoms))

    @router.post("/summarize")
    @ai_limit
    async def summarize(request: Request, payload: SummarizeRequest,
                        service: AssistService = Depends(get_assist_service)):
        return envelope(await service.summarize(payload.rca_id))

    return router
