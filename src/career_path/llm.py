"""
llm.py — Completion client, JSON extraction and error taxonomy
===============================================================
Shared plumbing for the four pipeline agents.

CompletionClient
    Thin wrapper over the OpenAI SDK.  Uses ``AzureOpenAI`` when the agent's
    config carries an endpoint, ``OpenAI`` otherwise.  JSON-mode, fixed
    temperature, no retries: the pipeline never re-attempts a failed call.

extract_json_object
    Pulls the first balanced ``{...}`` object out of free text.  Models
    sometimes wrap JSON in prose or code fences even in JSON mode, so agents
    never trust the raw response to be bare JSON.

Error taxonomy
--------------
  CareerAgentError              base class for everything the agents raise
  ├── ParseError                response held no parseable / schema-valid object
  ├── AuthError                 credentials rejected (403 / API_KEY)
  ├── RateLimitError            quota exhausted (429 / quota)
  ├── ResearchError             any other Researcher failure
  ├── PlanningError             any other Planner failure
  ├── CourseGenerationError     any other Course Generator failure
  └── AssessmentGenerationError any other Assessment Generator failure
"""

from __future__ import annotations

import json
import logging
from typing import Any, NoReturn, Protocol

import openai
from openai import AzureOpenAI, OpenAI

from career_path.config import AgentConfig

logger = logging.getLogger(__name__)


# ─── Errors ──────────────────────────────────────────────────────────────────

class CareerAgentError(Exception):
    """Base class for all pipeline agent failures."""


class ParseError(CareerAgentError):
    pass


class AuthError(CareerAgentError):
    pass


class RateLimitError(CareerAgentError):
    pass


class ResearchError(CareerAgentError):
    pass


class PlanningError(CareerAgentError):
    pass


class CourseGenerationError(CareerAgentError):
    pass


class AssessmentGenerationError(CareerAgentError):
    pass


def raise_for_llm_error(
    exc: BaseException,
    fallback: type[CareerAgentError],
    message: str,
) -> NoReturn:
    """
    Re-raise *exc* as the most specific ``CareerAgentError``.

    Authentication and quota problems are recognised by SDK type first and
    then by message text, so errors surfaced through other layers (proxies,
    mock clients) still produce a readable message.
    """
    if isinstance(exc, CareerAgentError):
        raise exc

    text = str(exc)
    if (
        isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError))
        or "403" in text
        or "API_KEY" in text
    ):
        raise AuthError(
            f"API key error: {text}. Please verify your API key is valid."
        ) from exc
    if isinstance(exc, openai.RateLimitError) or "quota" in text.lower() or "429" in text:
        raise RateLimitError(
            "Rate limit exceeded. Please wait a moment and try again."
        ) from exc
    raise fallback(f"{message}: {text}") from exc


# ─── JSON extraction ─────────────────────────────────────────────────────────

def _balanced_end(text: str, start: int) -> int:
    """Index just past the brace that closes ``text[start]``, or -1."""
    depth     = 0
    in_string = False
    escaped   = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def extract_json_object(text: str, what: str = "response") -> dict[str, Any]:
    """
    Return the first balanced ``{...}`` substring of *text* that parses as a
    JSON object.

    Candidates that are balanced but not valid JSON (``{curly}`` in prose) are
    skipped.  Raises ``ParseError`` when nothing parses, including the case of
    a response truncated before its closing brace.
    """
    if not text:
        raise ParseError(f"Failed to parse {what} - AI response was empty")

    pos = text.find("{")
    while pos != -1:
        end = _balanced_end(text, pos)
        if end == -1:
            break       # unbalanced from here on: truncated
        try:
            value = json.loads(text[pos:end])
        except json.JSONDecodeError:
            value = None
        if isinstance(value, dict):
            return value
        pos = text.find("{", pos + 1)

    logger.error("No JSON object in %s: %.500s", what, text)
    raise ParseError(f"Failed to parse {what} - AI response was not valid JSON")


# ─── Completion client ───────────────────────────────────────────────────────

_SYSTEM_PROMPT = (
    "You are a precise content generator for a career education platform. "
    "Respond with a single JSON object and nothing else."
)


class SupportsComplete(Protocol):
    def complete(self, prompt: str, system: str = _SYSTEM_PROMPT) -> str: ...


class CompletionClient:
    """
    One configured chat-completions endpoint.

    Raises ``AuthError`` at construction when the config has no usable key,
    so a missing credential fails before the first prompt is built.
    """

    def __init__(self, config: AgentConfig) -> None:
        if not config.is_configured:
            raise AuthError(
                "No OpenAI API key configured. Set OPENAI_API_KEY, or "
                "AZURE_OPENAI_ENDPOINT + AZURE_OPENAI_API_KEY."
            )
        self._cfg = config
        if config.uses_azure:
            self._client = AzureOpenAI(
                azure_endpoint=config.endpoint,
                api_key=config.api_key,
                api_version=config.api_version,
                max_retries=0,
            )
        else:
            self._client = OpenAI(api_key=config.api_key, max_retries=0)

    @property
    def model(self) -> str:
        return self._cfg.model

    def complete(self, prompt: str, system: str = _SYSTEM_PROMPT) -> str:
        response = self._client.chat.completions.create(
            model=self._cfg.model,
            response_format={"type": "json_object"},
            messages=[
                {"role": "system", "content": system},
                {"role": "user",   "content": prompt},
            ],
            temperature=self._cfg.temperature,
            max_tokens=self._cfg.max_tokens,
        )
        return response.choices[0].message.content or ""


def build_client(config: AgentConfig, live: bool = True) -> SupportsComplete:
    """Live client when *live* is set, offline mock tier otherwise."""
    if not live:
        from career_path.mock_llm import MockCompletionClient
        return MockCompletionClient()
    return CompletionClient(config)
