from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from govaudit_core.providers.base import BaseModelClient


class OpenAIClient(BaseModelClient):
    MODEL = "gpt-4o"
    # Low temperature keeps the JSON shape stable across chunks.
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None, max_retries: int = 5):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install openai"
            )
        super().__init__(model=model, max_retries=max_retries)
        # The SDK's own retry loop would hide the retry-after hint from complete().
        self.client = _OpenAI(api_key=api_key, max_retries=0)

    def _call_api(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return response.choices[0].message.content or ""
