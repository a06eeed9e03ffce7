#!/usr/bin/env python3
"""
Text-completion clients for structured extraction.

Supports Claude (anthropic SDK) and Gemini (REST over requests) behind one
interface. Clients are constructed explicitly and handed to the extractor;
nothing here patches global state.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import anthropic
import requests

from .errors import CompletionError, ConfigError
from .logger import get_logger

log = get_logger('llm')

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class CompletionClient(ABC):
    """Abstract base class for completion providers"""

    provider = "base"

    @abstractmethod
    def complete(self, prompt: str, max_tokens: int = 8192) -> str:
        """Return the text response for a prompt. Raises CompletionError."""
        pass

    def get_last_usage(self) -> Optional[Dict[str, int]]:
        """Return token usage from last call: {input_tokens, output_tokens}"""
        return getattr(self, '_last_usage', None)


class ClaudeCompletionClient(CompletionClient):
    """Anthropic Claude interface"""

    provider = "claude"

    def __init__(self, api_key: Optional[str] = None, model: str = "claude-sonnet-4-20250514",
                 timeout: float = 60.0, temperature: float = 0.1, client: Any = None):
        if client is None:
            if not api_key:
                raise ConfigError("Claude API key not found (set CLAUDE_API_KEY or ANTHROPIC_API_KEY)")
            # Retries are disabled: a rate-limit error fails the batch
            client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self.client = client
        self.model = model
        self.temperature = temperature
        self._last_usage = None

    def complete(self, prompt: str, max_tokens: int = 8192) -> str:
        log.debug(f"Calling {self.model} ({len(prompt)} chars, ~{len(prompt) // 4} tokens)")
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}]
            )
        except anthropic.APIStatusError as e:
            raise CompletionError(f"Claude API error: {e}", provider=self.provider,
                                  status_code=e.status_code) from e
        except anthropic.APIError as e:
            raise CompletionError(f"Claude request failed: {e}", provider=self.provider) from e

        # Capture token usage
        if hasattr(response, 'usage'):
            self._last_usage = {
                'input_tokens': response.usage.input_tokens,
                'output_tokens': response.usage.output_tokens
            }

        text_blocks = [block.text for block in response.content if getattr(block, 'type', None) == 'text']
        return "".join(text_blocks).strip()


class GeminiCompletionClient(CompletionClient):
    """Google Gemini generateContent interface"""

    provider = "gemini"

    def __init__(self, api_key: Optional[str], model: str = "gemini-1.5-flash",
                 timeout: float = 60.0, session: Optional[requests.Session] = None):
        if not api_key:
            raise ConfigError("Gemini API key not found (set GEMINI_API_KEY)")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.session = session or requests.Session()
        self._last_usage = None

    @property
    def endpoint(self) -> str:
        return f"{GEMINI_API_BASE}/{self.model}:generateContent"

    def complete(self, prompt: str, max_tokens: int = 8192) -> str:
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": 0.1,
                "maxOutputTokens": max_tokens,
                "topK": 40,
                "topP": 0.95,
            },
        }
        log.debug(f"Calling {self.model} ({len(prompt)} chars, ~{len(prompt) // 4} tokens)")
        try:
            response = self.session.post(
                self.endpoint,
                params={"key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise CompletionError(f"Gemini API error: {e}", provider=self.provider,
                                  status_code=status) from e
        except (requests.RequestException, ValueError) as e:
            raise CompletionError(f"Gemini request failed: {e}", provider=self.provider) from e

        usage = data.get("usageMetadata") or {}
        if usage:
            self._last_usage = {
                'input_tokens': usage.get('promptTokenCount', 0),
                'output_tokens': usage.get('candidatesTokenCount', 0),
            }

        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts).strip()


def get_completion_client(config) -> CompletionClient:
    """Factory function to get a completion client based on configuration"""
    provider = (config.LLM_PROVIDER or 'claude').lower()

    if provider == 'claude':
        return ClaudeCompletionClient(
            api_key=config.CLAUDE_API_KEY,
            model=config.CLAUDE_MODEL,
            timeout=config.LLM_TIMEOUT,
        )
    elif provider == 'gemini':
        return GeminiCompletionClient(
            api_key=config.GEMINI_API_KEY,
            model=config.GEMINI_MODEL,
            timeout=config.LLM_TIMEOUT,
        )
    else:
        raise ConfigError(f"Unsupported LLM provider: {provider}")
