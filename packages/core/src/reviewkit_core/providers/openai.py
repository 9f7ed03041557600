from __future__ import annotations

from typing import Optional

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from reviewkit_core.providers.base import BaseJudge


class OpenAIJudge(BaseJudge):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.0

    def __init__(self, api_key: str, model: Optional[str] = None):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for the openai judge. "
                "Install it with: pip install 'reviewkit[openai]'"
            )
        self.client = _OpenAI(api_key=api_key)
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        choice = response.choices[0] if response.choices else None
        return (choice.message.content or "") if choice is not None else ""
