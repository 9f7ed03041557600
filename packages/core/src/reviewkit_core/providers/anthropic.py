from __future__ import annotations

from typing import Optional

from reviewkit_core.providers.base import BaseJudge


class AnthropicJudge(BaseJudge):
    MODEL = "claude-sonnet-4-20250514"
    # Verdicts must be reproducible across runs of the same review.
    TEMPERATURE = 0.0

    def __init__(self, api_key: str, model: Optional[str] = None):
        try:
            from anthropic import Anthropic
        except ImportError as e:
            raise ImportError(
                "The 'anthropic' package is required for the anthropic judge. "
                "Install it with: pip install 'reviewkit[anthropic]'"
            ) from e
        self.client = Anthropic(api_key=api_key)
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        # Only text blocks carry the verdict list.
        return "".join(getattr(block, "text", "") for block in response.content if block.type == "text").strip()
