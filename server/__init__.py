"""HTTP API for the RCA knowledge base."""

from .app import create_app

__all__ = ['create_app']
