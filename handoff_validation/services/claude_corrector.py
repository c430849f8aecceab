"""
Claude corrector for invalid handoff payloads.

Sends the payload and its correction prompts to the Anthropic Messages API and
returns the JSON object Claude answers with. The engine never trusts the reply:
the orchestrator re-validates it like any other payload.
"""
import asyncio
import json
import re
from decimal import Decimal
from typing import Any, Optional

import httpx
import structlog

from handoff_validation.config.settings import ClaudeSettings
from handoff_validation.core.exceptions import ConfigurationError, CorrectorError
from handoff_validation.models.contracts import HandoffVariant
from handoff_validation.models.domain import CorrectionSuggestion

logger = structlog.get_logger(__name__)

ANTHROPIC_VERSION = "2023-06-01"

SYSTEM_MESSAGE = (
    "You repair structured handoff payloads of a marketing email pipeline. "
    "Keep every field that is already valid, fix only the listed problems, "
    "never change trace_id, and answer with a single JSON object."
)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


def extract_json_object(content: str) -> dict[str, Any]:
    """
    Parse the JSON object in a Claude reply, tolerating a Markdown code fence.

    Raises:
        ValueError: If the reply is not a JSON object
    """
    text = content.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    parsed = json.loads(text)
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected JSON object, got {type(parsed).__name__}")
    return parsed


class ClaudeCorrector:
    """
    Corrector backed by the Anthropic Messages API.

    Features:
    - Retries on rate limiting and timeouts
    - Token and cost tracking
    - Reply parsing into a plain payload dict
    """

    def __init__(
        self,
        settings: ClaudeSettings,
        client: Optional[httpx.AsyncClient] = None,
        backoff_seconds: float = 2.0,
    ) -> None:
        if not settings.api_key:
            raise ConfigurationError(
                "Claude API key is required for the corrector", config_key="CLAUDE_API_KEY"
            )

        self.settings = settings
        self.backoff_seconds = backoff_seconds
        self.logger = logger.bind(service="claude_corrector")

        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.timeout_seconds),
            limits=httpx.Limits(max_connections=5, max_keepalive_connections=2),
        )

        self._total_tokens_used = 0
        self._total_cost = Decimal("0.00")
        self._requests = 0

        self.logger.info(
            "Claude corrector initialized",
            model=settings.model,
            max_tokens=settings.max_tokens,
            timeout=settings.timeout_seconds,
        )

    async def correct(
        self,
        payload: dict[str, Any],
        suggestions: list[CorrectionSuggestion],
        variant: HandoffVariant,
    ) -> dict[str, Any]:
        """
        Ask Claude for a corrected payload.

        Args:
            payload: The invalid raw payload
            suggestions: Suggestions for every validation error
            variant: Handoff boundary the payload is crossing

        Returns:
            The corrected payload as a dict

        Raises:
            CorrectorError: On API failure or a reply that is not a JSON object
        """
        prompt = self._build_prompt(payload, suggestions, variant)
        content = await self._call_claude_api(prompt, variant)

        try:
            return extract_json_object(content)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError too
            self.logger.error(
                "Failed to parse Claude correction", error=str(e), response_content=content[:200]
            )
            raise CorrectorError(
                f"Invalid JSON response from Claude: {e}",
                variant=variant.value,
                original_exception=e,
            )

    def _build_prompt(
        self,
        payload: dict[str, Any],
        suggestions: list[CorrectionSuggestion],
        variant: HandoffVariant,
    ) -> str:
        problems = "\n\n".join(
            f"{index}. [{s.priority.value}] {s.field}: {s.issue}\n"
            f"Fix: {s.suggestion}\n{s.correction_prompt}"
            for index, s in enumerate(suggestions, start=1)
        )
        return (
            f"Handoff: {variant.value}\n\n"
            f"Problems to fix:\n{problems}\n\n"
            "Payload:\n"
            f"{json.dumps(payload, ensure_ascii=False, indent=2, default=str)}\n\n"
            "Respond with the complete corrected payload as valid JSON only."
        )

    async def _call_claude_api(self, prompt: str, variant: HandoffVariant) -> str:
        """
        Core Claude API call with retries on rate limiting and timeouts.

        Returns:
            Text content of the first reply block
        """
        request = {
            "model": self.settings.model,
            "max_tokens": self.settings.max_tokens,
            "temperature": self.settings.temperature,
            "system": SYSTEM_MESSAGE,
            "messages": [{"role": "user", "content": prompt}],
        }
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.settings.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        for attempt in range(self.settings.max_retries + 1):
            try:
                response = await self.client.post(
                    self.settings.api_url, json=request, headers=headers
                )
            except httpx.TimeoutException as e:
                if attempt < self.settings.max_retries:
                    self.logger.warning(
                        "Request timeout, retrying",
                        attempt=attempt + 1,
                        timeout=self.settings.timeout_seconds,
                    )
                    await asyncio.sleep(self.backoff_seconds / 2)
                    continue
                raise CorrectorError(
                    f"Request timeout after {self.settings.timeout_seconds}s",
                    variant=variant.value,
                    original_exception=e,
                )
            except httpx.HTTPError as e:
                raise CorrectorError(
                    f"API call failed: {e}", variant=variant.value, original_exception=e
                )

            if response.status_code == 200:
                return self._read_content(response.json(), attempt)

            if response.status_code == 429 and attempt < self.settings.max_retries:
                wait_time = (attempt + 1) * self.backoff_seconds
                self.logger.warning(
                    "Rate limited, retrying", attempt=attempt + 1, wait_time=wait_time
                )
                await asyncio.sleep(wait_time)
                continue

            error_msg = f"HTTP {response.status_code}: {response.text}"
            self.logger.error("Claude API error", error=error_msg)
            raise CorrectorError(
                error_msg, variant=variant.value, status_code=response.status_code
            )

        raise CorrectorError("Max retries exceeded", variant=variant.value)

    def _read_content(self, response_data: dict[str, Any], attempt: int) -> str:
        blocks = response_data.get("content") or [{}]
        content = blocks[0].get("text", "")

        usage = response_data.get("usage", {})
        tokens_used = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)
        cost = self._calculate_cost(usage)

        self._requests += 1
        self._total_tokens_used += tokens_used
        self._total_cost += cost

        self.logger.info(
            "Claude API call successful",
            tokens_used=tokens_used,
            cost=float(cost),
            attempt=attempt + 1,
        )
        return content

    def _calculate_cost(self, usage: dict[str, int]) -> Decimal:
        """Calculate API cost based on token usage"""
        # Claude 3 Haiku pricing per 1M tokens
        input_cost_per_million = Decimal("0.25")
        output_cost_per_million = Decimal("1.25")

        input_tokens = Decimal(str(usage.get("input_tokens", 0)))
        output_tokens = Decimal(str(usage.get("output_tokens", 0)))

        return (input_tokens / Decimal("1000000")) * input_cost_per_million + (
            output_tokens / Decimal("1000000")
        ) * output_cost_per_million

    def get_usage_statistics(self) -> dict[str, Any]:
        """Get current usage statistics"""
        return {
            "requests": self._requests,
            "total_tokens_used": self._total_tokens_used,
            "total_cost": float(self._total_cost),
        }

    async def close(self) -> None:
        """Close HTTP client and cleanup resources"""
        await self.client.aclose()
        self.logger.info(
            "Claude corrector closed",
            total_tokens_used=self._total_tokens_used,
            total_cost=float(self._total_cost),
        )


__all__ = [
    "ClaudeCorrector",
    "extract_json_object",
]
