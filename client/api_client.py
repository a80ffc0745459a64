"""HTTP client for the RCA knowledge base API.

Mirrors the browser application's service layer: one method per endpoint,
each returning the decoded response envelope.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:5000/api"


class RCAClientError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, error: Optional[str] = None):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.error = error


class RCAClient:
    """Thin wrapper over ``requests``; any requests-compatible session may be injected."""

    def __init__(self, base_url: str = DEFAULT_API_URL, session=None, timeout: float = 60):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}

        if response.status_code >= 400:
            logger.debug(f"{method} {url} failed with {response.status_code}: {body}")
            raise RCAClientError(response.status_code, body.get("message", "Request failed"), body.get("error"))
        return body

    # Records

    def list_rcas(self, **params) -> Dict[str, Any]:
        """List records; accepts category, severity, status, sortBy, order, page, limit."""
        return self._request("GET", "/rca", params={k: v for k, v in params.items() if v is not None})

    def get_rca(self, record_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/rca/{record_id}")

    def create_rca(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/rca", json=data)

    def update_rca(self, record_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/rca/{record_id}", json=data)

    def delete_rca(self, record_id: str) -> Dict[str, Any]:
        return self._request("DELETE", f"/rca/{record_id}")

    def search_rcas(self, query: str, category: str = "") -> Dict[str, Any]:
        params = {"q": query}
        if category:
            params["category"] = category
        return self._request("GET", "/rca/search", params=params)

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/rca/stats")

    # AI assist

    def find_similar(self, title: str = "", symptoms: str = "") -> Dict[str, Any]:
        return self._request("POST", "/ai/similarity", json={"title": title, "symptoms": symptoms})

    def assist(self, field: str, value: str, context: str = "") -> Dict[str, Any]:
        return self._request("POST", "/ai/assist", json={"field": field, "value": value, "context": context})

    def validate_root_cause(self, root_cause: str, symptoms: str = "") -> Dict[str, Any]:
        return self._request("POST", "/ai/validate-rootcause",
                             json={"rootCause": root_cause, "symptoms": symptoms})

    def generate_summary(self, record_id: str) -> Dict[str, Any]:
        return self._request("POST", "/ai/summarize", json={"rcaId": record_id})

    # Problem solver

    def search_solutions(self, problem: str, category: str = "", additional_details: str = "") -> Dict[str, Any]:
        return self._request("POST", "/solver/search", json={
            "problem": problem,
            "category": category,
            "additionalDetails": additional_details
        })

    def get_guided_help(self, record_id: str, user_problem: str, user_context: str = "") -> Dict[str, Any]:
        return self._request("POST", "/solver/guide", json={
            "rcaId": record_id,
            "userProblem": user_problem,
            "userContext": user_context
        })

    def chat(self, messages: List[Dict[str, Any]], context: str = "") -> Dict[str, Any]:
        return self._request("POST", "/solver/chat", json={"messages": messages, "context": context})

    def submit_feedback(self, **data) -> Dict[str, Any]:
        """Send feedback; accepts rcaId, helpful, problemDescription, actualSolution, createNewRCA."""
        return self._request("POST", "/solver/feedback", json=data)

    def get_suggestions(self, query: str) -> Dict[str, Any]:
        return self._request("GET", "/solver/suggest", params={"q": query})

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/health")
