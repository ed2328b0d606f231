"""AI classifier service for transactions no rule covers.

Features:
- Ollama integration (localhost, LAN, or remote with auth header)
- Concurrency limiting via semaphore for batch uploads
- Tolerant JSON parsing of model output

Every failure is raised as AIClassifierError so the classification pipeline
can fall back to its default classification.

Privacy constraints:
- Never log prompts or supplier text at INFO level
- Remote Ollama: auth header support, no PII in logs
"""

from __future__ import annotations

import json
import logging
import re
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from auto_journal.ai.prompts import PROMPT_VERSION, JournalPrompt
from auto_journal.exceptions import AIClassifierError
from auto_journal.schemas import RuleType

if TYPE_CHECKING:
    from auto_journal.config import Config, LLMConfig
    from auto_journal.schemas import TransactionFact

logger = logging.getLogger(__name__)


@dataclass
class AIClassification:
    """Raw journal classification proposed by the model.

    Names are as the model wrote them; mapping to master data ids happens in
    the classification pipeline.
    """

    category: str
    account_item: str | None
    account_item_code: str | None
    tax_category: str | None
    notes: str | None
    confidence: float
    reasoning: str
    model: str = ""
    prompt_version: str = PROMPT_VERSION

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "category": self.category,
            "account_item": self.account_item,
            "account_item_code": self.account_item_code,
            "tax_category": self.tax_category,
            "notes": self.notes,
            "confidence": self.confidence,
            "reasoning": self.reasoning,
            "model": self.model,
            "prompt_version": self.prompt_version,
        }


class LLMConcurrencyLimiter:
    """Semaphore-based concurrency limiter for LLM requests.

    Prevents overwhelming the Ollama server with too many concurrent requests.
    Thread-safe for synchronous usage.
    """

    def __init__(self, max_concurrent: int = 2) -> None:
        self._semaphore = threading.Semaphore(max_concurrent)
        self._active_count = 0
        self._lock = threading.Lock()

    def acquire(self, timeout: float | None = None) -> bool:
        """Acquire a slot for an LLM request.

        Args:
            timeout: Maximum time to wait (None = blocking)

        Returns:
            True if acquired, False if timeout
        """
        acquired = self._semaphore.acquire(blocking=True, timeout=timeout)
        if acquired:
            with self._lock:
                self._active_count += 1
        return acquired

    def release(self) -> None:
        """Release a slot after request completes."""
        with self._lock:
            self._active_count -= 1
        self._semaphore.release()

    @property
    def active_requests(self) -> int:
        """Current number of active LLM requests."""
        with self._lock:
            return self._active_count


class AIClassifierService:
    """LLM-assisted journal entry classification.

    LLM opt-in control: config.llm.enabled is the master switch and this
    service is the only place that checks it.
    """

    def __init__(self, config: Config) -> None:
        """Initialize the AI classifier.

        Args:
            config: Application configuration.
        """
        self.config = config
        self.llm_config: LLMConfig = config.llm

        # Support formats: "Bearer token" or "Custom-Header: value"
        headers = {}
        if self.llm_config.auth_header:
            if ":" in self.llm_config.auth_header:
                key, value = self.llm_config.auth_header.split(":", 1)
                headers[key.strip()] = value.strip()
            else:
                headers["Authorization"] = self.llm_config.auth_header

        # connect: initial connection, read: waiting for the model
        self._client = httpx.Client(
            timeout=httpx.Timeout(
                connect=10.0,
                read=float(self.llm_config.timeout_seconds),
                write=30.0,
                pool=10.0,
            ),
            headers=headers,
        )
        self._prompt = JournalPrompt()
        self._limiter = LLMConcurrencyLimiter(max_concurrent=self.llm_config.max_concurrent)

    @property
    def is_enabled(self) -> bool:
        """Check if the AI classifier is enabled."""
        return self.llm_config.enabled

    @property
    def active_requests(self) -> int:
        """Number of in-flight LLM requests."""
        return self._limiter.active_requests

    def classify(
        self,
        transaction: TransactionFact,
        industry_hint: str | None = None,
    ) -> AIClassification:
        """Propose a journal classification for a transaction.

        Args:
            transaction: Transaction facts.
            industry_hint: Client industry name (e.g. "ドライバー").

        Returns:
            AIClassification as reported by the model.

        Raises:
            AIClassifierError: If the classifier is disabled, the call fails,
                or the response cannot be used.
        """
        if not self.is_enabled:
            raise AIClassifierError("AI classifier is disabled")

        user_message = self._prompt.format_user_message(
            date=transaction.date,
            supplier=transaction.supplier_text,
            amount=transaction.amount,
            tax_amount=transaction.tax_amount,
            items=transaction.item_names,
            rule_type=RuleType.parse(transaction.rule_type).value,
            industry=industry_hint,
        )

        result = self._call_ollama(
            model=self.llm_config.model,
            system_prompt=self._prompt.system_prompt,
            user_message=user_message,
        )

        try:
            data = self._parse_json_response(result["content"])
        except json.JSONDecodeError as e:
            logger.warning("Failed to parse AI classifier response: %s", e.msg)
            raise AIClassifierError(f"Malformed AI response: {e.msg}") from e

        classification = self._to_classification(data, result["model"])
        logger.debug(
            "AI classified as %s / %s (confidence %.2f)",
            classification.account_item,
            classification.tax_category,
            classification.confidence,
        )
        return classification

    def _to_classification(self, data: Any, model: str) -> AIClassification:
        """Validate parsed model output."""
        if not isinstance(data, dict):
            raise AIClassifierError("AI response is not a JSON object")

        account_item = _text(data.get("account_item"))
        account_item_code = _text(data.get("account_item_code"))
        if not account_item and not account_item_code:
            raise AIClassifierError("AI response has no account item")

        try:
            confidence = float(data.get("confidence", 0.0))
        except (TypeError, ValueError) as e:
            raise AIClassifierError(f"AI confidence is not a number: {data.get('confidence')!r}") from e

        return AIClassification(
            category=_text(data.get("category")) or "事業用",
            account_item=account_item,
            account_item_code=account_item_code,
            tax_category=_text(data.get("tax_category")),
            notes=_text(data.get("notes")),
            confidence=confidence,
            reasoning=_text(data.get("reasoning")) or "",
            model=model,
        )

    def _call_ollama(
        self,
        model: str,
        system_prompt: str,
        user_message: str,
    ) -> dict:
        """Call Ollama API for completion with concurrency limiting.

        Never logs prompts or raw content at INFO level.

        Returns:
            Dict with "content" and "model" keys.

        Raises:
            AIClassifierError: On timeout, HTTP or connection failure, or a body
                without a string message content.
        """
        if not self._limiter.acquire(timeout=self.llm_config.timeout_seconds):
            logger.warning(
                "LLM request timed out waiting for concurrency slot (max=%d, active=%d)",
                self.llm_config.max_concurrent,
                self._limiter.active_requests,
            )
            raise AIClassifierError("Timed out waiting for an AI classifier slot")

        try:
            url = f"{self.llm_config.ollama_url.rstrip('/')}/api/chat"
            payload = {
                "model": model,
                "messages": [
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_message},
                ],
                "stream": False,
                "format": "json",
                "options": {"temperature": 0},
            }

            logger.debug("Calling Ollama model %s at %s", model, self.llm_config.ollama_url)
            response = self._client.post(url, json=payload)
            response.raise_for_status()
            body = response.json()
            message = body.get("message") if isinstance(body, dict) else None
            content = message.get("content") if isinstance(message, dict) else None
            if not isinstance(content, str):
                logger.error("Ollama response has no message content (model %s)", model)
                raise AIClassifierError("AI classifier response has no message content")

            logger.debug("Ollama %s returned %d chars", model, len(content))
            return {"content": content, "model": model}

        except httpx.TimeoutException as e:
            logger.warning("Ollama request timed out after %ds", self.llm_config.timeout_seconds)
            raise AIClassifierError("AI classifier timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "Ollama API error %s for model '%s' at %s",
                e.response.status_code,
                model,
                self.llm_config.ollama_url,
            )
            raise AIClassifierError(f"AI classifier HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Ollama request failed: %s (URL: %s)", e, self.llm_config.ollama_url)
            raise AIClassifierError(f"AI classifier request failed: {e}") from e
        except ValueError as e:
            logger.error("Ollama returned a non-JSON body: %s", e)
            raise AIClassifierError("AI classifier returned a non-JSON body") from e
        finally:
            self._limiter.release()

    def _parse_json_response(self, content: str) -> dict:
        """Parse JSON from LLM response.

        Handles:
        - Markdown code blocks (```json ... ```)
        - Leading/trailing whitespace
        - JSON embedded in surrounding text
        - Trailing commas

        Raises:
            json.JSONDecodeError: If content cannot be parsed as valid JSON.
        """
        if not content:
            raise json.JSONDecodeError("Empty response", "", 0)

        content = content.strip()

        if content.startswith("```json"):
            content = content[7:]
        elif content.startswith("```"):
            content = content[3:]
        if content.endswith("```"):
            content = content[:-3]
        content = content.strip()

        try:
            return json.loads(content)
        except json.JSONDecodeError:
            pass

        # Outermost { ... } block in mixed text
        json_match = re.search(r"\{[\s\S]*\}", content)
        if json_match:
            candidate = json_match.group()
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                pass

            cleaned = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]", "", candidate)
            cleaned = re.sub(r",\s*([}\]])", r"\1", cleaned)
            try:
                return json.loads(cleaned)
            except json.JSONDecodeError:
                pass

        raise json.JSONDecodeError(
            f"Could not parse JSON from response: {content[:200]}", content, 0
        )

    def close(self) -> None:
        """Close HTTP client."""
        self._client.close()

    def __enter__(self) -> AIClassifierService:
        """Enter context manager."""
        return self

    def __exit__(self, *args) -> None:
        """Exit context manager."""
        self.close()


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
