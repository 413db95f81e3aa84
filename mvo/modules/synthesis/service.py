from openai import OpenAI, APIError, RateLimitError
from mvo.config import settings
from mvo.modules.synthesis.prompts import (
    SYSTEM_PROMPT, build_input_bundle, build_user_prompt, normalize_language
)
from mvo.modules.synthesis.schemas import SynthesisRequest, SynthesisResult
from typing import Any, Dict, Optional
import json
import logging
import re

logger = logging.getLogger(__name__)

RESULT_KEYS = {
    "decision_framing": "decisionFraming",
    "signal_summary": "signalSummary",
    "what_signals_say": "whatSignalsSay",
    "key_risks_and_assumptions": "keyRisksAndAssumptions",
    "recommendation": "recommendation",
    "founder_safe_summary": "founderSafeSummary",
}

# object keys tried, in order, before falling back to joining every value
TEXT_KEYS = ("text", "content", "summary", "message", "value")


class SynthesisError(Exception):
    OPENAI_API_KEY_MISSING = "OPENAI_API_KEY_MISSING"
    AI_RATE_LIMIT_EXCEEDED = "AI_RATE_LIMIT_EXCEEDED"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"

    def __init__(self, code: str, message: Optional[str] = None, retry_after_seconds: Optional[int] = None):
        super().__init__(message or code)
        self.code = code
        self.retry_after_seconds = retry_after_seconds


def value_to_display_string(value: Any) -> str:
    """Render whatever the model returned for a section as plain text"""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "\n\n".join(p for p in (value_to_display_string(v) for v in value) if p)
    if isinstance(value, dict):
        for key in TEXT_KEYS:
            if value.get(key) is not None:
                return value_to_display_string(value[key])
        return "\n\n".join(p for p in (value_to_display_string(v) for v in value.values()) if p)
    return str(value)


def parse_synthesis_response(text: str) -> SynthesisResult:
    """Decode the model's JSON, tolerating a ```json fence and snake_case keys"""
    raw = text.strip()
    raw = re.sub(r"^```json\s*", "", raw, flags=re.IGNORECASE)
    raw = re.sub(r"\s*```\s*$", "", raw)
    parsed: Dict[str, Any] = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Synthesis response is not a JSON object")
    values = {}
    for field, camel in RESULT_KEYS.items():
        value = parsed.get(camel)
        if value is None:
            value = parsed.get(field)
        values[field] = value_to_display_string(value)
    return SynthesisResult(**values)


class SynthesisService:
    def __init__(self, client: Optional[OpenAI] = None):
        if client is None and settings.openai_api_key:
            client = OpenAI(api_key=settings.openai_api_key)
        if client is None:
            logger.warning("OPENAI_API_KEY not set - synthesis will not work")
        self.client = client

    def run(self, request: SynthesisRequest) -> SynthesisResult:
        """Run one synthesis for an idea version"""
        if self.client is None:
            raise SynthesisError(SynthesisError.OPENAI_API_KEY_MISSING)

        bundle = build_input_bundle(
            title=request.title or "",
            decision_making=request.decision_making or "",
            content=request.content if isinstance(request.content, list) else [],
            decision_evidence=request.decision_evidence,
            market_validation=request.market_validation,
        )
        language = normalize_language(request.language)

        try:
            response = self.client.chat.completions.create(
                model=settings.openai_model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(language, bundle)},
                ],
                response_format={"type": "json_object"},
                temperature=settings.openai_temperature,
            )
        except RateLimitError as e:
            logger.warning(f"OpenAI rate limit hit for idea {request.idea_id}: {e}")
            raise SynthesisError(SynthesisError.AI_RATE_LIMIT_EXCEEDED, retry_after_seconds=60)
        except APIError as e:
            logger.error(f"OpenAI request failed: {e}")
            raise SynthesisError(SynthesisError.UPSTREAM_ERROR, str(e) or "OpenAI request failed")

        content = ""
        if response.choices:
            content = (response.choices[0].message.content or "").strip()
        if not content:
            raise SynthesisError(SynthesisError.EMPTY_RESPONSE, "Empty synthesis response")

        try:
            result = parse_synthesis_response(content)
        except ValueError as e:
            logger.error(f"Could not decode synthesis for idea {request.idea_id}: {e}")
            raise SynthesisError(SynthesisError.UPSTREAM_ERROR, "Synthesis response was not valid JSON")
        logger.info(f"Synthesis generated for idea {request.idea_id} v{request.idea_version_number} ({language})")
        return result
