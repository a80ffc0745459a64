"""LLM-assisted authoring: similar incidents, field tips, root-cause checks and summaries.

Each operation has a deterministic answer when no LLM credential is
configured. With a credential, provider failures surface as
``UpstreamUnavailable``.
"""

import logging
from typing import Any, Dict, Optional

from config.database import RecordStore

from . import prompts
from .errors import BadRequest, RecordNotFound
from .llm import LLMGateway
from .models import present_record

logger = logging.getLogger(__name__)

SIMILAR_LIMIT = 5


def looks_like_symptom(root_cause: str) -> bool:
    text = root_cause.lower()
    return any(keyword in text for keyword in prompts.SYMPTOM_KEYWORDS)


def verdict_is_symptom(reply: str) -> bool:
    text = reply.lower()
    return "verdict: symptom" in text or "verdict:symptom" in text


class AssistService:
    def __init__(self, store: RecordStore, gateway: LLMGateway):
        self.store = store
        self.gateway = gateway

    async def find_similar(self, title: Optional[str], symptoms: Optional[str]) -> Dict[str, Any]:
        """Find past records resembling a new issue, with an optional AI assessment."""
        if not title and not symptoms:
            raise BadRequest("Please provide title or symptoms to find similar RCAs")

        terms = f"{title or ''} {symptoms or ''}".split()
        similar = await self.store.search_substring(terms, ["title", "symptoms"], None, SIMILAR_LIMIT)
        similar = [present_record(r) for r in similar]

        if not self.gateway.configured:
            return {
                "similarRCAs": similar,
                "aiSuggestion": prompts.AI_UNAVAILABLE_SUGGESTION,
                "source": "database",
            }

        suggestion = await self.gateway.complete(
            prompts.ANALYST_SYSTEM,
            prompts.similarity_prompt(title, symptoms, similar),
            operation="similarity",
        )
        return {"similarRCAs": similar, "aiSuggestion": suggestion, "source": "ai-enhanced"}

    async def assist(self, field: Optional[str], value: Optional[str],
                     context: Optional[str] = None) -> Dict[str, Any]:
        if not field or not value:
            raise BadRequest("Please provide field name and value for assistance")

        if not self.gateway.configured:
            return {
                "originalValue": value,
                "suggestion": prompts.DEFAULT_FIELD_TIPS.get(field, prompts.GENERIC_FIELD_TIP),
                "improved": value,
                "warnings": [],
                "source": "default",
            }

        suggestion = await self.gateway.complete(
            prompts.ASSIST_SYSTEM,
            prompts.assist_prompt(field, value, context),
            operation="assist",
        )
        return {
            "originalValue": value,
            "suggestion": suggestion,
            "field": field,
            "source": "ai-enhanced",
        }

    async def validate_root_cause(self, root_cause: Optional[str],
                                  symptoms: Optional[str] = None) -> Dict[str, Any]:
        """Judge whether a stated root cause is really a symptom."""
        if not root_cause:
            raise BadRequest("Please provide root cause to validate")

        if not self.gateway.configured:
            likely_symptom = looks_like_symptom(root_cause)
            return {
                "isValid": not likely_symptom,
                "confidence": "low",
                "feedback": (
                    prompts.LIKELY_SYMPTOM_FEEDBACK if likely_symptom
                    else prompts.LIKELY_ROOT_CAUSE_FEEDBACK
                ),
                "source": "heuristic",
            }

        analysis = await self.gateway.complete(
            prompts.VALIDATE_SYSTEM,
            prompts.validate_root_cause_prompt(root_cause, symptoms),
            operation="validate_root_cause",
        )
        return {
            "isValid": not verdict_is_symptom(analysis),
            "analysis": analysis,
            "source": "ai-enhanced",
        }

    async def summarize(self, record_id: Optional[str]) -> Dict[str, Any]:
        record = await self.store.get_record(record_id) if record_id else None
        if record is None:
            raise RecordNotFound(record_id)

        if not self.gateway.configured:
            return {"summary": prompts.basic_summary(record), "source": "basic"}

        summary = await self.gateway.complete(
            prompts.SUMMARY_SYSTEM,
            prompts.summary_prompt(record),
            operation="summarize",
        )
        return {"summary": summary, "rca": present_record(record), "source": "ai-enhanced"}
