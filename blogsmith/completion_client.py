"""Completion Client — one chat-completion request/response cycle against a remote LLM."""

from __future__ import annotations

import logging
import time

import requests

from blogsmith.config import ConfigError, Settings

log = logging.getLogger(__name__)

__all__ = [
    "AnthropicCompletionClient",
    "CompletionClient",
    "ConfigError",
    "OpenRouterCompletionClient",
    "ProviderError",
    "ProviderTimeoutError",
    "build_completion_client",
]


class ProviderError(Exception):
    """The upstream provider rejected the request or could not be reached.

    ``status_code`` is the HTTP status when there was one, else None.
    ``category`` is the caller-facing bucket used for user messages.
    """

    CATEGORIES = {
        401: "auth",
        403: "forbidden",
        408: "timeout",
        429: "rate_limited",
    }

    def __init__(self, status_code: int | None, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def category(self) -> str:
        if self.status_code is None:
            return "provider"
        if self.status_code >= 500:
            return "upstream_unavailable"
        return self.CATEGORIES.get(self.status_code, "provider")


class ProviderTimeoutError(ProviderError, TimeoutError):
    """The bounded wait for the provider was exceeded."""

    def __init__(self, message: str):
        super().__init__(None, message)

    @property
    def category(self) -> str:
        return "timeout"


class CompletionClient:
    """Base client. Subclasses implement ``invoke``; callers use ``complete``."""

    def invoke(self, model: str, messages: list[dict]) -> dict:
        raise NotImplementedError

    def complete(self, system_instruction: str, user_message: str, model: str) -> str:
        """Send one system + user exchange and return the generated text."""
        result = self.invoke(
            model,
            [
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_message},
            ],
        )
        return result["content"]


class OpenRouterCompletionClient(CompletionClient):
    """OpenAI-compatible chat completions over plain HTTP (OpenRouter by default)."""

    def __init__(self, api_key, base_url, temperature=0.7, max_tokens=4000,
                 timeout=60, referer="http://localhost:5173", app_title="AI Blog Generator"):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": referer,
            "X-Title": app_title,
        }

    def invoke(self, model: str, messages: list[dict]) -> dict:
        if not self.api_key:
            raise ConfigError("OPENROUTER_API_KEY environment variable is not set")

        url = f"{self.base_url}/chat/completions"
        payload = {
            "model": model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

        start = time.time()
        try:
            resp = requests.post(url, headers=self.headers, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout:
            log.warning(f"Completion timed out after {self.timeout}s", extra={"endpoint": url, "model": model})
            raise ProviderTimeoutError(f"Request timeout - provider took longer than {self.timeout}s to respond")
        except requests.exceptions.RequestException as e:
            raise ProviderError(None, f"Cannot reach completion provider: {e}")
        elapsed = time.time() - start

        log.info(
            f"POST {url} -> {resp.status_code}",
            extra={
                "endpoint": url,
                "method": "POST",
                "status_code": resp.status_code,
                "response_time": round(elapsed, 3),
                "model": model,
            },
        )

        if not 200 <= resp.status_code < 300:
            raise ProviderError(resp.status_code, _error_message(resp))

        try:
            data = resp.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise ProviderError(resp.status_code, "No completion content in provider response")
        return {"content": content or ""}


class AnthropicCompletionClient(CompletionClient):
    """Anthropic Messages API via the official SDK. SDK retries are disabled."""

    def __init__(self, api_key, temperature=0.7, max_tokens=4000, timeout=60, client=None):
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise ConfigError("ANTHROPIC_API_KEY environment variable is not set")
            import anthropic
            self._client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def invoke(self, model: str, messages: list[dict]) -> dict:
        import anthropic

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        chat = [m for m in messages if m["role"] != "system"]

        start = time.time()
        try:
            response = self.client.messages.create(
                model=model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system,
                messages=chat,
            )
        except anthropic.APITimeoutError:
            raise ProviderTimeoutError(f"Request timeout - Anthropic took longer than {self.timeout}s to respond")
        except anthropic.APIStatusError as e:
            raise ProviderError(e.status_code, e.message)
        except anthropic.APIConnectionError as e:
            raise ProviderError(None, f"Cannot reach Anthropic API: {e}")
        except anthropic.APIError as e:
            raise ProviderError(None, f"Anthropic API error: {e}")

        log.info(
            f"Anthropic messages.create ({model}) ok",
            extra={"model": model, "response_time": round(time.time() - start, 3)},
        )
        text = "".join(block.text for block in response.content if getattr(block, "type", "text") == "text")
        return {"content": text}


def _error_message(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:200] or resp.reason}"
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return err["message"]
        if isinstance(err, str):
            return err
        if body.get("message"):
            return body["message"]
    return f"HTTP {resp.status_code}: {resp.reason or 'Unknown error'}"


def build_completion_client(settings: Settings) -> CompletionClient:
    """Construct the configured backend. Raises ConfigError without a credential."""
    api_key = settings.require_llm_key()
    llm = settings.llm
    if llm.provider == "anthropic":
        return AnthropicCompletionClient(
            api_key=api_key,
            temperature=llm.temperature,
            max_tokens=llm.max_tokens,
            timeout=llm.timeout_seconds,
        )
    return OpenRouterCompletionClient(
        api_key=api_key,
        base_url=llm.base_url,
        temperature=llm.temperature,
        max_tokens=llm.max_tokens,
        timeout=llm.timeout_seconds,
        referer=settings.referer,
        app_title=settings.app_title,
    )
