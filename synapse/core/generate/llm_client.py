import logging
import httpx
from typing import Any, Dict, Optional
from synapse.core.errors import CompletionServiceError
from synapse.config.settings import settings

logger = logging.getLogger(__name__)

class LLMClient:
    """
    OpenRouter (OpenAI-compatible) chat completion client.
    One request per call: no retry and no model fallback, so a failed call surfaces
    to the caller as CompletionServiceError.
    """

    def __init__(self):
        self.api_key = settings.openrouter_api_key
        self.config = settings.llm
        self.base_url = f"{self.config.base_url.rstrip('/')}/chat/completions"
        self.headers = {
            "Authorization": f"Bearer {self.api_key}" if self.api_key else "",
            "HTTP-Referer": "https://synapse.local",
            "X-Title": "Synapse",
            "Content-Type": "application/json"
        }

    @property
    def model(self) -> str:
        return self.config.model

    def complete(self,
                 system_prompt: str,
                 user_prompt: str,
                 temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None,
                 json_mode: bool = False) -> str:
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            "temperature": temperature if temperature is not None else self.config.temperature,
        }
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        if json_mode:
            payload["response_format"] = {"type": "json_object"}

        if not self.api_key:
            logger.warning("OPENROUTER_API_KEY is not set. LLM calls will fail.")

        try:
            with httpx.Client(timeout=self.config.timeout) as client:
                response = client.post(self.base_url, headers=self.headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            raise CompletionServiceError(
                f"Completion request failed with status {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise CompletionServiceError(f"Completion request failed: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionServiceError("Malformed completion response") from e

        if content is None:
            raise CompletionServiceError("Completion response has no content")
        return content
