"""FastAPI dependencies resolving the services built in the app lifespan."""

from fastapi import Request

from services.assist import AssistService
from services.records import RecordService
from services.solver import ProblemSolver


def get_record_service(request: Request) -> RecordService:
    return request.app.state.record_service


def get_assist_service(request: Request) -> AssistService:
    return request.app.state.assist_service


def get_solver(request: Request) -> ProblemSolver:
    return request.app.state.solver
