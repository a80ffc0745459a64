"""Problem solver endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter

from services.solver import ProblemSolver

from ..dependencies import get_solver
from ..schemas import ChatRequest, FeedbackRequest, GuideRequest, SolverSearchRequest, envelope


def create_router(limiter: Limiter, ai_rate: str) -> APIRouter:
    """Solver endpoints; everything except ``/suggest`` is limited per client."""
    router = APIRouter(prefix="/api/solver", tags=["solver"])
    ai_limit = limiter.limit(ai_rate)

    @router.post("/search")
    @ai_limit
    async def search_solutions(request: Request, payload: SolverSearchRequest,
                               solver: ProblemSolver = Depends(get_solver)):
        result = await solver.search(payload.problem, payload.category, payload.additional_details)
        return envelope(result)

    @router.post("/guide")
    @ai_limit
    async def guided_help(request: Request, payload: GuideRequest,
                          solver: ProblemSolver = Depends(get_solver)):
        result = await solver.guide(payload.rca_id, payload.user_problem, payload.user_context)
        return envelope(result)

    @router.post("/chat")
    @ai_limit
    async def chat(request: Request, payload: ChatRequest,
                   solver: ProblemSolver = Depends(get_solver)):
        messages = [m.model_dump(by_alias=True) for m in payload.messages]
        return envelope(await solver.chat(messages))

    @router.post("/feedback")
    @ai_limit
    async def submit_feedback(request: Request, payload: FeedbackRequest,
                              solver: ProblemSolver = Depends(get_solver)):
        result = await solver.feedback(
            payload.rca_id,
            payload.helpful,
            payload.problem_description,
            payload.actual_solution,
            payload.create_new_rca,
        )
        if "newRCA" in result:
            return JSONResponse(
                status_code=201,
                content=envelope(result, "Thank you for your feedback! A new RCA has been created."),
            )
        return envelope(result, "Thank you for your feedback!")

    @router.get("/suggest")
    async def suggest(q: Optional[str] = None, solver: ProblemSolver = Depends(get_solver)):
        return envelope(await solver.suggest(q))

    return router
