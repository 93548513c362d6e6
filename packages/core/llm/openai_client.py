from __future__ import annotations

import json
import os
import socket
import urllib.error
import urllib.request
from contextlib import nullcontext
from typing import Any, Dict, List, Optional

try:
    from opentelemetry import trace
except Exception:  # pragma: no cover - optional dependency resolution
    trace = None


class OpenAIClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout: Optional[int] = None,
    ) -> None:
        self._api_key = api_key or os.getenv("OPENAI_API_KEY")
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout or int(os.getenv("OPENAI_TIMEOUT_SECONDS", "60"))
        self._tracer = trace.get_tracer("feedletter.llm") if trace else None

    @property
    def model(self) -> str:
        return self._model

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def complete(
        self,
        messages: List[Dict[str, Any]],
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> str:
        """Run a chat completion and return the first choice's text."""
        if not self._api_key:
            raise RuntimeError("OPENAI_API_KEY is required for LLM calls.")

        payload = {
            "model": self._model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        data = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            f"{self._base_url}/chat/completions",
            data=data,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
            method="POST",
        )

        span_context = (
            self._tracer.start_as_current_span(
                "openai.chat",
                attributes={
                    "llm.model": self._model,
                    "llm.base_url": self._base_url,
                    "llm.max_tokens": max_tokens,
                },
            )
            if self._tracer
            else nullcontext()
        )
        with span_context:
            try:
                with urllib.request.urlopen(request, timeout=self._timeout) as response:
                    body = json.loads(response.read().decode("utf-8"))
            except urllib.error.HTTPError as exc:
                body = exc.read().decode("utf-8") if exc.fp else ""
                raise RuntimeError(
                    f"OpenAI HTTP {exc.code} error: {body or exc.reason}"
                ) from exc
            except (urllib.error.URLError, socket.timeout) as exc:
                raise RuntimeError(f"OpenAI request failed: {exc}") from exc

        choices = body.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""
