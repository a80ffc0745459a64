"""Python client and CLI for the RCA knowledge base API."""

from .api_client import RCAClient, RCAClientError, DEFAULT_API_URL

__all__ = ['RCAClient', 'RCAClientError', 'DEFAULT_API_URL']
