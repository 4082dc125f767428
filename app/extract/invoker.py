"""
Inference invoker: generateContent against a fallback chain of models.

Per model, overload (503) and rate limiting (429) are retried with linear backoff;
once a model's retries are spent the next model in the chain is tried. Any other
error status aborts the whole chain because it is not model-specific.
"""
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from app.core.gemini_client import GeminiEndpoints
from app.extract.model_chains import resolve_chain
from app.extract.prompts import build_generation_payload
from app.guardrails.errors import (
    AllModelsExhaustedError,
    GenerationError,
    InvalidRequestError,
    ModelOverloadedError,
    RateLimitedError,
    TransientBackendError,
)
from app.models.schemas import ProcessingMode
from app.utils.retry import with_retry

logger = logging.getLogger(__name__)

EMPTY_RESULT = "{}"


def classify_generation_error(model: str, status_code: int, body: str) -> GenerationError | TransientBackendError:
    """Map a non-success generateContent status to its error type: 503 overloaded and 429 rate limited are transient, other 4xx are invalid requests, anything else is a fatal generation error."""
    if status_code == 503:
        return ModelOverloadedError(f"Model {model} overloaded", status_code, body)
    if status_code == 429:
        return RateLimitedError(f"Model {model} rate limited", status_code, body)
    if 400 <= status_code < 500:
        return InvalidRequestError(f"Generation failed with {model}", status_code, body)
    return GenerationError(f"Generation failed with {model}", status_code, body)


def extract_text(data: Dict[str, Any]) -> str:
    """Return the concatenated text parts of the first candidate, or "" when there is none (e.g. content filtered)."""
    candidates = data.get("candidates") if isinstance(data, dict) else None
    if not candidates or not isinstance(candidates[0], dict):
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


def generate_once(
    session: requests.Session,
    endpoints: GeminiEndpoints,
    model: str,
    payload: Dict[str, Any],
    timeout: float = 300.0,
) -> str:
    """Issue one generateContent request. Returns the generated text, or EMPTY_RESULT when the response has no text."""
    resp = session.post(endpoints.generate_url(model), json=payload, timeout=timeout)
    if not (200 <= resp.status_code < 300):
        raise classify_generation_error(model, resp.status_code, resp.text)

    try:
        data = resp.json()
    except ValueError as e:
        raise GenerationError(f"Generation with {model} returned non-JSON body", resp.status_code, resp.text) from e

    text = extract_text(data)
    if not text.strip():
        candidates = (data.get("candidates") if isinstance(data, dict) else None) or [{}]
        finish_reason = candidates[0].get("finishReason") if isinstance(candidates[0], dict) else None
        logger.warning("empty_generation model=%s finish_reason=%s", model, finish_reason)
        return EMPTY_RESULT
    return text


def generate_with_model(
    session: requests.Session,
    endpoints: GeminiEndpoints,
    model: str,
    payload: Dict[str, Any],
    *,
    max_retries: int = 2,
    base_delay_seconds: float = 1.0,
    timeout: float = 300.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Call one model with up to max_retries retries on transient errors and network failures (delay base * attempt). Exhausted network retries raise GenerationError; exhausted transient retries re-raise the transient error so the caller can fail over."""
    try:
        return with_retry(
            lambda: generate_once(session, endpoints, model, payload, timeout=timeout),
            retries=max_retries,
            backoff_seconds=base_delay_seconds,
            linear=True,
            retry_on=(TransientBackendError, requests.RequestException),
            sleep=sleep,
            label=f"generate[{model}]",
        )
    except requests.RequestException as e:
        raise GenerationError(f"Network error with {model}: {e}") from e


def invoke_generation(
    session: requests.Session,
    endpoints: GeminiEndpoints,
    file_uri: str,
    mime_type: str,
    mode: ProcessingMode,
    model: str,
    *,
    chains: Optional[Dict[str, List[str]]] = None,
    max_retries: int = 2,
    base_delay_seconds: float = 1.0,
    max_output_tokens: int = 8192,
    timeout: float = 300.0,
    sleep: Callable[[float], None] = time.sleep,
) -> str:
    """Generate the meeting JSON for an ACTIVE file, walking the requested model's fallback chain.
    Returns the first successful model's text; raises AllModelsExhaustedError when every model stayed overloaded / rate limited, or the fatal error that aborted the chain.
    Why available: Overload on a preview model is common; falling back keeps long uploads from being wasted."""
    chain = resolve_chain(model, chains)
    payload = build_generation_payload(file_uri, mime_type, mode, max_output_tokens=max_output_tokens)
    logger.info("model_strategy %s", " -> ".join(chain))

    last_err: Optional[TransientBackendError] = None
    for current in chain:
        if current != model:
            logger.info("switching_to_fallback_model model=%s", current)
        try:
            return generate_with_model(
                session,
                endpoints,
                current,
                payload,
                max_retries=max_retries,
                base_delay_seconds=base_delay_seconds,
                timeout=timeout,
                sleep=sleep,
            )
        except TransientBackendError as e:
            logger.warning("model_exhausted model=%s error=%s", current, e)
            last_err = e

    raise AllModelsExhaustedError(chain, last_err)
