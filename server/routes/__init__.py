"""API routers."""

from .records import router as records_router
from .assist import create_router as create_assist_router
from .solver import create_router as create_solver_router

__all__ = ['records_router', 'create_assist_router', 'create_solver_router']
