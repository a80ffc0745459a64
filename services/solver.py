"""Problem solver: match a described problem against past incidents and guide the user.

The server keeps no session state; the client drives the flow
search -> guide -> feedback and replays chat history on every turn.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from config.database import RecordStore
from store.base import WRITABLE_FIELDS

from . import prompts
from .errors import BadRequest, RecordNotFound
from .llm import LLMGateway
from .models import RecordCreate, invalid_fields, present_record
from .records import RecordService

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10
ANALYSIS_CONTEXT = 5
CATEGORY_RECENT = 5
CHAT_CONTEXT_LIMIT = 3
SUGGEST_LIMIT = 5
SUGGEST_MIN_CHARS = 3

SOLVER_SEARCH_FIELDS = ["title", "symptoms", "rootCause", "solution", "tags"]
CHAT_SEARCH_FIELDS = ["title", "symptoms", "rootCause"]

GREETING_RE = re.compile(
    r"^(hi|hello|hey|good morning|good afternoon|good evening|howdy|greetings)",
    re.IGNORECASE,
)
SMALL_TALK_RE = re.compile(
    r"^(hi|hello|hey|good morning|good afternoon|good evening|howdy|greetings"
    r"|thanks|thank you|ok|okay|yes|no|bye|goodbye)",
    re.IGNORECASE,
)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def classify_confidence(analysis: str) -> str:
    """Coarse confidence label from the model's match assessment."""
    text = analysis.lower()
    if "high confidence" in text or "match assessment: high" in text:
        return "high"
    if "medium confidence" in text or "match assessment: medium" in text:
        return "medium"
    return "low"


def significant_words(text: str) -> List[str]:
    return [word for word in text.split() if len(word) > 3]


def normalize_conversation(messages: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Reduce a chat history to turns the provider accepts.

    The result starts with a user turn, strictly alternates user/assistant and
    ends with the latest user message. Error replies and empty turns are
    dropped, a run of user turns collapses to its latest, and assistant turns
    without a preceding user turn are discarded. Returns [] if there is no
    user turn at all.
    """
    turns = [
        m for m in messages
        if m.get("role") in ("user", "assistant")
        and (m.get("content") or "").strip()
        and not (m.get("role") == "assistant" and m.get("isError"))
    ]
    last_user = max((i for i, m in enumerate(turns) if m["role"] == "user"), default=None)
    if last_user is None:
        return []

    result: List[Dict[str, str]] = []
    for message in turns[:last_user + 1]:
        turn = {"role": message["role"], "content": message["content"]}
        if message["role"] == "user":
            if result and result[-1]["role"] == "user":
                result[-1] = turn
            else:
                result.append(turn)
        elif result and result[-1]["role"] == "user":
            result.append(turn)
    return result


def chat_error_message(error: Exception) -> str:
    """Pick the apology shown to the user for a failed chat turn."""
    message = getattr(error, "message", None) or str(error)
    if "API key" in message:
        return prompts.CHAT_CONNECTION_APOLOGY
    if "rate limit" in message:
        return prompts.CHAT_BUSY_APOLOGY
    if getattr(error, "status", None) == 401:
        return prompts.CHAT_INVALID_KEY_APOLOGY
    return prompts.CHAT_GENERIC_APOLOGY


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse the outermost ``{...}`` block of a reply, or None."""
    if not text:
        return None
    match = _JSON_OBJECT_RE.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def feedback_record_defaults(problem: str, solution: str) -> Dict[str, Any]:
    return {
        "title": problem[:100],
        "category": "Other",
        "symptoms": problem,
        "rootCause": "To be determined",
        "solution": solution,
        "prevention": "",
        "severity": "Medium",
        "status": "Resolved",
        "tags": ["auto-generated", "from-solver"],
        "createdBy": "Problem Solver",
    }


class ProblemSolver:
    """Search, guided help, chat, feedback and autocomplete for the solver UI."""

    def __init__(self, records: RecordService, gateway: LLMGateway,
                 analysis_max_tokens: Optional[int] = None):
        self.records = records
        self.gateway = gateway
        self.analysis_max_tokens = analysis_max_tokens

    @property
    def store(self) -> RecordStore:
        return self.records.store

    async def search(self, problem: Optional[str], category: Optional[str] = None,
                     additional_details: Optional[str] = None) -> Dict[str, Any]:
        if not problem:
            raise BadRequest("Please describe your problem")

        matched = await self.records.text_search(
            problem, significant_words(problem), SOLVER_SEARCH_FIELDS,
            limit=SEARCH_LIMIT, operation="solver",
        )

        if category and category != "All":
            seen = {r["id"] for r in matched}
            for record in await self.store.recent_records(CATEGORY_RECENT, category):
                if record["id"] not in seen:
                    matched.append(record)
                    seen.add(record["id"])

        if matched:
            analysis = await self.gateway.try_complete(
                prompts.SOLVER_SYSTEM,
                prompts.solver_analysis_prompt(problem, category, additional_details,
                                               matched[:ANALYSIS_CONTEXT]),
                self.analysis_max_tokens,
                operation="solver_search",
            )
            if analysis:
                confidence = classify_confidence(analysis)
            else:
                analysis = prompts.keyword_match_summary(matched[0], len(matched))
                confidence = "medium"
        else:
            analysis = await self.gateway.try_complete(
                prompts.GENERAL_TROUBLESHOOTING_SYSTEM,
                prompts.general_troubleshooting_prompt(problem, category, additional_details),
                self.analysis_max_tokens,
                operation="solver_general",
            ) or prompts.NO_MATCH_CHECKLIST
            confidence = "low"

        logger.info(f"Solver search matched {len(matched)} record(s), confidence {confidence}")
        return {
            "matchedRCAs": [present_record(r) for r in matched[:ANALYSIS_CONTEXT]],
            "totalMatches": len(matched),
            "aiAnalysis": analysis,
            "confidence": confidence,
            "searchedProblem": problem,
        }

    async def guide(self, record_id: Optional[str], user_problem: Optional[str],
                    user_context: Optional[str] = None) -> Dict[str, Any]:
        """Adapt a past record's solution to the user's current problem."""
        record = await self.store.get_record(record_id) if record_id else None
        if record is None:
            raise RecordNotFound(record_id)

        guidance = await self.gateway.try_complete(
            prompts.GUIDE_SYSTEM,
            prompts.guide_prompt(record, user_problem, user_context),
            self.analysis_max_tokens,
            operation="guide",
        ) or prompts.templated_guide(record)

        return {"rca": present_record(record), "guidance": guidance}

    async def chat(self, messages: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Answer the latest user turn. Failures become an apologetic reply, never an error."""
        user_turns = [m for m in messages if m.get("role") == "user"]
        last_message = (user_turns[-1].get("content") or "") if user_turns else ""
        if not last_message.strip():
            raise BadRequest("Please send a message")

        if not self.gateway.configured:
            is_greeting = GREETING_RE.match(last_message.strip()) is not None
            return {
                "response": prompts.CHAT_GREETING if is_greeting else prompts.chat_default_reply(last_message),
                "relevantRCAs": [],
                "source": "fallback",
            }

        try:
            relevant: List[Dict[str, Any]] = []
            if not SMALL_TALK_RE.match(last_message.strip()) and len(last_message) > 5:
                relevant = await self.records.text_search(
                    last_message, significant_words(last_message), CHAT_SEARCH_FIELDS,
                    limit=CHAT_CONTEXT_LIMIT, operation="chat",
                )

            conversation = normalize_conversation(messages)
            reply = await self.gateway.converse(prompts.chat_system_prompt(relevant), conversation)
            return {
                "response": reply,
                "relevantRCAs": [present_record(r) for r in relevant],
                "source": "ai",
            }
        except Exception as e:
            logger.error(f"Chat error: {e}", exc_info=True)
            detail = getattr(e, "message", None) or str(e)
            return {
                "response": f"{chat_error_message(e)}\n\n_Error details: {detail}_",
                "relevantRCAs": [],
                "source": "error",
            }

    async def _structure_record(self, problem: str, solution: str) -> Dict[str, Any]:
        defaults = feedback_record_defaults(problem, solution)
        document = dict(defaults)

        if self.gateway.configured:
            reply = await self.gateway.try_complete(
                prompts.STRUCTURE_SYSTEM,
                prompts.structure_record_prompt(problem, solution),
                self.analysis_max_tokens,
                operation="structure_record",
            )
            parsed = extract_json_object(reply)
            if parsed is None:
                logger.info("Could not parse structured record from AI reply, using defaults")
            else:
                document.update({k: v for k, v in parsed.items() if k in WRITABLE_FIELDS})
                document["status"] = defaults["status"]
                document["createdBy"] = defaults["createdBy"]

        try:
            RecordCreate.model_validate(document)
        except ValidationError as e:
            rejected = set(invalid_fields(e)) & set(defaults)
            logger.info(f"Reverting invalid AI fields to defaults: {sorted(rejected)}")
            for field in rejected:
                document[field] = defaults[field]
        return document

    async def feedback(self, record_id: Optional[str] = None, helpful: Optional[bool] = None,
                       problem_description: Optional[str] = None,
                       actual_solution: Optional[str] = None,
                       create_new_rca: bool = False) -> Dict[str, Any]:
        """Record feedback; optionally materialize a solved problem as a new record."""
        if record_id and helpful:
            # TODO: persist helpfulness so solver search can rank by it
            logger.info(f"RCA {record_id} was marked as helpful")

        if create_new_rca and problem_description and actual_solution:
            document = await self._structure_record(problem_description, actual_solution)
            new_record = await self.records.create(document)
            return {"feedbackRecorded": True, "newRCA": new_record}

        return {"feedbackRecorded": True}

    async def suggest(self, query: Optional[str]) -> List[Dict[str, Any]]:
        """Autocomplete: records whose title or symptoms contain the query."""
        if not query or len(query) < SUGGEST_MIN_CHARS:
            return []

        matches = await self.store.search_substring([query], ["title", "symptoms"], None, SUGGEST_LIMIT)
        return [
            {
                "id": r["id"],
                "title": r["title"],
                "preview": r["symptoms"][:100] + "...",
                "category": r["category"],
            }
            for r in matches
        ]
