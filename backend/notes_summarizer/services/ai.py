from __future__ import annotations

import json
import logging
import os
import ssl
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib import error, request

from ..config import Settings
from ..errors import ConfigurationError, ProviderError
from .fallback import summarize_fallback

logger = logging.getLogger("app.ai")

SYSTEM_PROMPT = (
    "You are an AI assistant specialized in summarizing meeting notes and transcripts. "
    "Your task is to create structured, professional summaries based on the user's specific instructions. "
    "Always maintain accuracy and include important details while following the requested format."
)

EMPTY_COMPLETION = "Unable to generate summary."


def _http_post(url: str, headers: Dict[str, str], data: Dict[str, Any], timeout: int = 60) -> Dict[str, Any]:
    body = json.dumps(data).encode("utf-8")
    hdrs = {"User-Agent": "notes-summarizer/1.0 python-urllib", **headers}
    req = request.Request(url, data=body, headers=hdrs, method="POST")
    # Allow opting out of verification behind intercepting proxies
    if os.getenv("SUMMARIZER_SSL_NO_VERIFY"):
        ctx = ssl._create_unverified_context()  # type: ignore[attr-defined]
    else:
        ctx = ssl.create_default_context()
    try:
        with request.urlopen(req, context=ctx, timeout=timeout) as resp:
            raw = resp.read()
            return json.loads(raw.decode("utf-8"))
    except error.HTTPError as e:
        try:
            payload = e.read().decode("utf-8")
        except Exception:
            payload = str(e)
        raise ProviderError(f"HTTP {e.code}: {payload}") from e
    except (error.URLError, TimeoutError, OSError) as e:
        raise ProviderError(f"request failed: {e}") from e
    except ValueError as e:
        raise ProviderError(f"invalid JSON response: {e}") from e


class GroqClient:
    """Chat-completions client for Groq's OpenAI-compatible API.

    Constructed once per process from settings and handed to the request
    handlers through application state.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "mixtral-8x7b-32768",
        base_url: str = "https://api.groq.com/openai/v1",
        temperature: float = 0.3,
        max_tokens: int = 2048,
        timeout: int = 60,
    ) -> None:
        self.api_key = (api_key or "").strip()
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "GroqClient":
        return cls(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            base_url=settings.groq_api_base,
            temperature=settings.groq_temperature,
            max_tokens=settings.groq_max_tokens,
            timeout=settings.groq_timeout_s,
        )

    def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "GROQ_API_KEY environment variable is not configured. Please add it to your .env file."
            )
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
            "top_p": 1,
        }
        res = _http_post(
            f"{self.base_url}/chat/completions",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            data=payload,
            timeout=self.timeout,
        )
        try:
            content = res["choices"][0]["message"].get("content") or ""
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError(f"unexpected response shape: {e}") from e
        return content.strip()


@dataclass(frozen=True)
class GeneratedSummary:
    text: str
    source: str  # "groq" | "fallback"


def build_messages(transcript: str, instruction: str) -> List[Dict[str, str]]:
    user_prompt = (
        "Please analyze the following meeting transcript and create a summary based on these "
        f'specific instructions: "{instruction}"\n\n'
        f"Meeting Transcript:\n{transcript}\n\n"
        f"Instructions: {instruction}\n\n"
        "Please provide a well-structured summary that follows the given instructions exactly."
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user_prompt},
    ]


def generate_summary(client: GroqClient, transcript: str, instruction: str) -> GeneratedSummary:
    """Summarize via the provider, falling back to the local heuristic once.

    A missing API key is a configuration problem and propagates as
    :class:`ConfigurationError`. Any other provider failure is logged and
    answered by :func:`summarize_fallback`, whose output counts as a normal
    successful summary.
    """
    try:
        content = client.complete(build_messages(transcript, instruction))
    except ConfigurationError:
        raise
    except Exception as e:
        logger.warning(f"provider call failed, using fallback summary: {e}")
        return GeneratedSummary(text=summarize_fallback(transcript, instruction), source="fallback")
    return GeneratedSummary(text=content or EMPTY_COMPLETION, source="groq")


def check_connection(client: GroqClient) -> Dict[str, Any]:
    """Send a tiny prompt; report success or the error message."""
    try:
        content = client.complete(
            [{"role": "user", "content": "Hello, respond with 'OK' if you can hear me."}],
            max_tokens=10,
        )
        return {"success": True, "response": content}
    except Exception as e:
        return {"success": False, "error": str(e)}
