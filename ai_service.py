"""
Improve/review suggestions for briefs and offers from an OpenAI-compatible
chat completion endpoint.

Every text field is truncated before it leaves the process. The model is
asked for a JSON object, and its answer is normalized to a fixed shape so
callers never see missing keys.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI

from errors import IntegrationError
from utils import truncate_text

logger = logging.getLogger(__name__)


PROJECT_IMPROVE_PROMPT = """You help clients improve project briefs.
Your task:
1. Make the description more structured and easier to follow
2. Improve the wording of the expected result
3. Suggest concrete improvements
4. Point out missing information

Rules:
- Do NOT invent data. If something is missing, put it in missing_info
- Be short and to the point
- Answer in the language of the brief
- Return JSON in this format:
{
  "suggested_description": "improved description",
  "suggested_result": "improved expected result",
  "improvements": ["improvement 1", "improvement 2"],
  "missing_info": ["missing item 1", "missing item 2"]
}"""

PROJECT_REVIEW_PROMPT = """You advise clients on project briefs.
Your task is to give advice on improving the brief WITHOUT rewriting it.

Rules:
- Name concrete improvements
- List missing information
- Be short and to the point
- Answer in the language of the brief
- Return JSON in this format:
{
  "improvements": ["advice 1", "advice 2"],
  "missing_info": ["missing item 1", "missing item 2"]
}"""

OFFER_IMPROVE_PROMPT = """You help freelancers improve their offers.
Your task:
1. Make the approach more structured and convincing
2. Improve the wording of the guarantees
3. Describe the possible risks better
4. Suggest concrete improvements

Rules:
- Do NOT change price or deadline. Only approach, guarantees, risks
- Do NOT invent data
- Be short and to the point
- Answer in the language of the offer
- Return JSON in this format:
{
  "suggested_offer": {
    "approach": "improved approach",
    "guarantees": "improved guarantees",
    "risks": "improved risk description"
  },
  "improvements": ["improvement 1", "improvement 2"]
}"""

OFFER_REVIEW_PROMPT = """You advise freelancers on their offers.
Your task is to give advice on improving the offer WITHOUT rewriting it.

Rules:
- Do NOT judge whether the freelancer should be hired
- Name concrete improvements
- List missing information
- Be short and to the point
- Answer in the language of the offer
- Return JSON in this format:
{
  "improvements": ["advice 1", "advice 2"],
  "missing_info": ["missing item 1", "missing item 2"]
}"""


def truncate_fields(value: Any, limit: int) -> Any:
    """Truncate every string inside a (nested) payload."""
    if isinstance(value, str):
        return truncate_text(value, limit)
    if isinstance(value, dict):
        return {k: truncate_fields(v, limit) for k, v in value.items()}
    if isinstance(value, list):
        return [truncate_fields(v, limit) for v in value]
    return value


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if v is not None and str(v).strip()]


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


class AIService:
    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: Optional[str] = None,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        max_input_length: int = 5000,
        max_completion_tokens: int = 2048,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.timeout = timeout
        self.max_input_length = max_input_length
        self.max_completion_tokens = max_completion_tokens
        self._client: Optional[OpenAI] = None

    @classmethod
    def from_config(cls, config) -> "AIService":
        return cls(
            config.get("AI_API_KEY"),
            base_url=config.get("AI_BASE_URL"),
            model=config.get("AI_MODEL", "gpt-4o-mini"),
            timeout=config.get("AI_TIMEOUT_SECONDS", 30.0),
            max_input_length=config.get("AI_MAX_INPUT_LENGTH", 5000),
            max_completion_tokens=config.get("AI_MAX_COMPLETION_TOKENS", 2048),
        )

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            if not self.api_key:
                raise IntegrationError("AI service is not configured")
            kwargs: Dict[str, Any] = {"api_key": self.api_key, "timeout": self.timeout, "max_retries": 1}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = OpenAI(**kwargs)
        return self._client

    def complete_json(self, system_prompt: str, user_content: str) -> Dict[str, Any]:
        """Single chat completion. Returns the parsed JSON object."""
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                max_completion_tokens=self.max_completion_tokens,
                response_format={"type": "json_object"},
            )
        except IntegrationError:
            raise
        except Exception as e:
            logger.error("AI call failed: %s", e)
            raise IntegrationError() from e

        content = "{}"
        if response.choices:
            content = response.choices[0].message.content or "{}"
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("AI returned non-JSON content (%d chars)", len(content))
            raise IntegrationError() from e
        if not isinstance(data, dict):
            raise IntegrationError()
        return data

    def _ask(self, system_prompt: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        payload = truncate_fields(payload, self.max_input_length)
        return self.complete_json(system_prompt, json.dumps(payload, ensure_ascii=False))

    # ---------------- briefs ----------------

    def improve_project(self, data: Dict[str, Any]) -> Dict[str, Any]:
        out = self._ask(PROJECT_IMPROVE_PROMPT, {
            "template": data.get("template", ""),
            "title": data.get("title", ""),
            "description": data.get("description", ""),
            "result": data.get("result", ""),
            "deadline": data.get("deadline", ""),
            "budget": data.get("budget", ""),
        })
        return {
            "suggested_description": _str(out.get("suggested_description")),
            "suggested_result": _str(out.get("suggested_result")),
            "improvements": _str_list(out.get("improvements")),
            "missing_info": _str_list(out.get("missing_info")),
        }

    def review_project(self, data: Dict[str, Any]) -> Dict[str, Any]:
        out = self._ask(PROJECT_REVIEW_PROMPT, {
            "template": data.get("template", ""),
            "description": data.get("description", ""),
            "result": data.get("result", ""),
            "deadline": data.get("deadline", ""),
            "budget": data.get("budget", ""),
        })
        return {
            "improvements": _str_list(out.get("improvements")),
            "missing_info": _str_list(out.get("missing_info")),
        }

    # ---------------- offers ----------------

    def improve_offer(self, data: Dict[str, Any]) -> Dict[str, Any]:
        out = self._ask(OFFER_IMPROVE_PROMPT, {
            "template": data.get("template", ""),
            "project": data.get("project", {}),
            "offer": data.get("offer", {}),
        })
        suggested = out.get("suggested_offer")
        if not isinstance(suggested, dict):
            suggested = {}
        return {
            "suggested_offer": {
                "approach": _str(suggested.get("approach")),
                "guarantees": _str(suggested.get("guarantees")),
                "risks": _str(suggested.get("risks")),
            },
            "improvements": _str_list(out.get("improvements")),
        }

    def review_offer(self, data: Dict[str, Any]) -> Dict[str, Any]:
        out = self._ask(OFFER_REVIEW_PROMPT, {
            "template": data.get("template", ""),
            "project": data.get("project", {}),
            "offer": data.get("offer", {}),
        })
        return {
            "improvements": _str_list(out.get("improvements")),
            "missing_info": _str_list(out.get("missing_info")),
        }
