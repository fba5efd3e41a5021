"""
Ollama chat client used by the AI assistant, with response caching and retries
"""
import asyncio
import hashlib
import json
import time
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import httpx
from pydantic import BaseModel

from ubiquitous.core.config import get_settings
from ubiquitous.core.logging_config import LoggingConfig
from ubiquitous.core.metrics import (llm_errors_total,
                                     llm_request_duration_seconds,
                                     llm_requests_total)

logger = LoggingConfig.get_logger(__name__)


class LLMResponse(BaseModel):
    """Ollama chat response model"""
    model: str
    response: str
    done: bool = False
    cached: bool = False


class LLMError(Exception):
    """Raised when the LLM server cannot produce a response"""
    pass


class CacheEntry(BaseModel):
    """Cache entry for LLM responses"""
    response: str
    timestamp: datetime
    model: str


def _base_url(url: str) -> str:
    """Ollama's native API lives at the server root, not under the OpenAI-style /v1"""
    url = url.rstrip("/")
    if url.endswith("/v1"):
        url = url[:-3]
    return url


class LLMClient:
    """
    Client for the Ollama /api/chat endpoint

    ``transport`` lets tests plug in an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        url = base_url or settings.ollama_url
        if not url:
            raise LLMError("No Ollama server configured (set OLLAMA_URL)")
        self.base_url = _base_url(url)
        self.model = model or settings.ollama_model
        self.timeout = float(settings.llm_timeout_seconds)
        self.max_retries = settings.llm_max_retries
        self.options = {
            "temperature": settings.llm_temperature,
            "top_p": settings.llm_top_p,
            "num_ctx": settings.llm_num_ctx,
        }
        self.cache: Dict[str, CacheEntry] = {}
        self.cache_ttl = timedelta(hours=settings.llm_cache_ttl_hours)
        self._transport = transport

    def _client(self, timeout: Optional[float] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or self.timeout,
            transport=self._transport,
        )

    def _get_cache_key(self, prompt: str, system_prompt: Optional[str], **kwargs) -> str:
        key_data = f"{self.model}:{system_prompt or ''}:{prompt}:{json.dumps(kwargs, sort_keys=True)}"
        return hashlib.sha256(key_data.encode()).hexdigest()

    def _get_from_cache(self, cache_key: str) -> Optional[str]:
        entry = self.cache.get(cache_key)
        if entry is None:
            return None
        if datetime.now(timezone.utc) - entry.timestamp > self.cache_ttl:
            del self.cache[cache_key]
            return None
        return entry.response

    def _save_to_cache(self, cache_key: str, response: str):
        if self.cache_ttl.total_seconds() <= 0:
            return
        self.cache[cache_key] = CacheEntry(
            response=response,
            timestamp=datetime.now(timezone.utc),
            model=self.model
        )

    async def health_check(self) -> bool:
        """Check that the server answers /api/tags (no model load required)"""
        try:
            async with self._client(timeout=5.0) as client:
                response = await client.get("/api/tags")
                return response.status_code == 200
        except httpx.HTTPError as e:
            logger.debug(f"Ollama health check failed: {e}")
            return False

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        analysis_type: str = "general",
        use_cache: bool = True,
        **kwargs
    ) -> LLMResponse:
        """
        Generate a chat completion

        Args:
            prompt: User message
            system_prompt: Optional system message
            history: Prior messages in Ollama format
            analysis_type: Label for metrics
            use_cache: Serve identical prompts from the in-memory cache
            **kwargs: Overrides for temperature, top_p, num_ctx

        Returns:
            LLMResponse
        """
        cache_key = self._get_cache_key(prompt, system_prompt, **kwargs)
        if use_cache and not history:
            cached = self._get_from_cache(cache_key)
            if cached is not None:
                llm_requests_total.labels(model=self.model, analysis_type=analysis_type, status="cached").inc()
                return LLMResponse(model=self.model, response=cached, done=True, cached=True)

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        if history:
            messages.extend(history)
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "options": {**self.options, **kwargs},
        }

        start_time = time.time()
        async with self._client() as client:
            for attempt in range(self.max_retries):
                try:
                    response = await client.post("/api/chat", json=payload)
                    response.raise_for_status()
                    data = response.json()
                    break
                except httpx.TimeoutException:
                    if attempt < self.max_retries - 1:
                        logger.warning(
                            f"Ollama request timed out, retrying ({attempt + 1}/{self.max_retries})"
                        )
                        await asyncio.sleep(attempt + 1)
                        continue
                    self._record_error("timeout", analysis_type)
                    raise LLMError(
                        f"Request to {self.base_url} timed out after {self.max_retries} attempts"
                    )
                except httpx.HTTPStatusError as e:
                    self._record_error("http_status", analysis_type)
                    raise LLMError(
                        f"HTTP error from {self.base_url}: {e.response.status_code} - {e.response.text}"
                    )
                except (httpx.HTTPError, ValueError) as e:
                    self._record_error(type(e).__name__, analysis_type)
                    raise LLMError(f"Error calling Ollama at {self.base_url}: {e}")

        llm_request_duration_seconds.labels(model=self.model, analysis_type=analysis_type).observe(
            time.time() - start_time
        )

        response_text = (data.get("message") or {}).get("content", "")
        if data.get("done", True) and response_text and use_cache and not history:
            self._save_to_cache(cache_key, response_text)

        llm_requests_total.labels(model=self.model, analysis_type=analysis_type, status="success").inc()
        return LLMResponse(model=self.model, response=response_text, done=data.get("done", True))

    def _record_error(self, error_type: str, analysis_type: str):
        llm_errors_total.labels(model=self.model, error_type=error_type).inc()
        llm_requests_total.labels(model=self.model, analysis_type=analysis_type, status="error").inc()


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> Optional[LLMClient]:
    """Shared client, or None when no Ollama server is configured"""
    global _llm_client
    if _llm_client is None and get_settings().llm_enabled:
        _llm_client = LLMClient()
    return _llm_client
