"""
Model-Backed Parser - Generative Fallback with a Model Cascade

Queries the local Ollama backend when no policy pattern matched. Candidate
models are tried strictly one after another: the preferred model first,
then every other non-embedding model. Each attempt ends in exactly one of
three states:

- SUCCESS: a schema-valid record was produced; stop.
- RETRYABLE_FAILURE: transport error, timeout, non-2xx, overload, bad
  JSON or schema-invalid payload; move on to the next model.
- TERMINAL_NEGATIVE: the model answered alert_type null; stop, the text
  is not an alert we handle.

Backend unavailability is reported as a not-matched result, never raised.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from alertops.llm.ollama_client import OllamaClient
from alertops.models.alert import ParsedAlert, PARSE_METHOD_LLM
from alertops.models.policy import Policy
from alertops.observability.metrics import get_metrics
from alertops.parsers.json_extract import extract_json_object
from alertops.parsers.prompt import build_messages
from alertops.policies.store import PolicyStore, get_policy_store
from alertops.utils.error_handling import BackendTimeoutError, ModelBackendError, classify_error

logger = logging.getLogger(__name__)


# Strings some models emit instead of a JSON null
NULL_ALERT_TYPES = ("null", "none")


class AttemptStatus(str, Enum):
    """Outcome of one model in the cascade."""
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    TERMINAL_NEGATIVE = "terminal_negative"


@dataclass(frozen=True)
class ModelAttempt:
    model: str
    status: AttemptStatus
    parsed: Optional[ParsedAlert] = None
    error: Optional[str] = None
    category: Optional[str] = None


@dataclass(frozen=True)
class LLMParseResult:
    matched: bool
    parsed: Optional[ParsedAlert] = None
    policy: Optional[Policy] = None
    model_used: Optional[str] = None
    error: Optional[str] = None
    terminal_negative: bool = False
    attempts: tuple[ModelAttempt, ...] = field(default_factory=tuple)


def candidate_models(preferred: str, available: list[str]) -> list[str]:
    """Preferred model first, then other non-embedding models, no duplicates."""
    candidates = [preferred]
    for model in available:
        if "embed" in model or model in candidates:
            continue
        candidates.append(model)
    return candidates


def is_null_alert_type(payload: dict[str, Any]) -> bool:
    if "alert_type" not in payload:
        return False
    value = payload["alert_type"]
    if value is None:
        return True
    return isinstance(value, str) and value.strip().lower() in NULL_ALERT_TYPES


class LLMParser:
    """
    Parser backed by a generative model.

    Input: alert text
    Output: LLMParseResult
    Side Effects: HTTP calls to the model backend
    """

    def __init__(
        self,
        client: Optional[OllamaClient] = None,
        store: Optional[PolicyStore] = None,
    ):
        self._client = client
        self._store = store

    @property
    def client(self) -> OllamaClient:
        if self._client is None:
            self._client = OllamaClient()
        return self._client

    @property
    def store(self) -> PolicyStore:
        return self._store or get_policy_store()

    async def try_parse(self, text: str) -> LLMParseResult:
        """Run the health check and the model cascade for one text."""
        client = self.client
        base_url = client.base_url

        try:
            available = await client.list_models()
        except BackendTimeoutError:
            return LLMParseResult(
                matched=False,
                error=f"Ollama health check timed out. Make sure Ollama is running at {base_url}",
            )
        except ModelBackendError as e:
            if classify_error(e) == "network":
                return LLMParseResult(
                    matched=False,
                    error=f"Cannot connect to Ollama at {base_url}. Make sure Ollama is running: {e}",
                )
            return LLMParseResult(matched=False, error=f"Ollama server not accessible at {base_url}")

        if not available:
            return LLMParseResult(
                matched=False,
                error="No models available in Ollama. Pull a model first: ollama pull llama3",
            )

        policies = self.store.load()
        messages = build_messages(text, policies)
        attempts: list[ModelAttempt] = []

        for model in candidate_models(client.model, available):
            attempt = await self._attempt(model, messages)
            attempts.append(attempt)

            if attempt.status == AttemptStatus.SUCCESS:
                policy = self.store.get_policy(attempt.parsed.alert_type)
                logger.info(
                    f"[LLMParser] {model} parsed alert_type={attempt.parsed.alert_type} "
                    f"(policy attached: {policy is not None})"
                )
                return LLMParseResult(
                    matched=True,
                    parsed=attempt.parsed,
                    policy=policy,
                    model_used=model,
                    attempts=tuple(attempts),
                )

            if attempt.status == AttemptStatus.TERMINAL_NEGATIVE:
                logger.info(f"[LLMParser] {model} found no matching alert type; stopping cascade")
                return LLMParseResult(
                    matched=False,
                    model_used=model,
                    error=attempt.error,
                    terminal_negative=True,
                    attempts=tuple(attempts),
                )

        errors = [f"{a.model}: {a.error}" for a in attempts]
        logger.error(f"[LLMParser] Parsing failed for all models: {errors}")
        return LLMParseResult(
            matched=False,
            error=(
                f"All models failed. Errors: {'; '.join(errors)}. "
                f"Policy-based parsing is recommended for reliable results."
            ),
            attempts=tuple(attempts),
        )

    async def _attempt(self, model: str, messages: list[dict[str, str]]) -> ModelAttempt:
        started = time.monotonic()
        attempt = await self._run_attempt(model, messages)
        get_metrics().record_model_attempt(model, attempt.status.value, time.monotonic() - started)
        if attempt.status == AttemptStatus.RETRYABLE_FAILURE:
            logger.warning(
                f"[LLMParser] {model} failed ({attempt.category}), trying next model: {attempt.error}"
            )
        return attempt

    async def _run_attempt(self, model: str, messages: list[dict[str, str]]) -> ModelAttempt:
        try:
            content = await self.client.chat(model, messages)
        except (BackendTimeoutError, ModelBackendError, httpx.HTTPError) as e:
            return ModelAttempt(
                model,
                AttemptStatus.RETRYABLE_FAILURE,
                error=str(e) or type(e).__name__,
                category=classify_error(e),
            )

        try:
            payload = extract_json_object(content)
        except ValueError as e:
            return ModelAttempt(
                model, AttemptStatus.RETRYABLE_FAILURE, error=f"Unparseable reply: {e}", category="validation"
            )

        if is_null_alert_type(payload):
            return ModelAttempt(
                model,
                AttemptStatus.TERMINAL_NEGATIVE,
                error=f"Model {model} found no matching alert type",
            )

        payload["parse_method"] = PARSE_METHOD_LLM
        try:
            parsed = ParsedAlert.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"[LLMParser] {model} returned an invalid payload {payload!r}: {e}")
            return ModelAttempt(
                model,
                AttemptStatus.RETRYABLE_FAILURE,
                error=f"Schema validation failed: {e.error_count()} error(s)",
                category="validation",
            )

        return ModelAttempt(model, AttemptStatus.SUCCESS, parsed=parsed)
