"""LLM client for single-shot chat completions."""

import asyncio
from typing import Any, Dict, Optional

import httpx

from folioscribe.models.config import LLMConfig
from folioscribe.services.exceptions import MalformedCollaboratorResponse
from folioscribe.utils.logging import get_logger


logger = get_logger(__name__)


def _extract_openai_content(data: Dict[str, Any]) -> str | None:
    """
    Extract the assistant message from an OpenAI-style completion.

    OpenAI-compatible servers return:
    {
        "choices": [{
            "message": {"role": "assistant", "content": "..."},
            "finish_reason": "stop"
        }]
    }
    """
    try:
        return data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return None


def _extract_ollama_content(data: Dict[str, Any]) -> str | None:
    """
    Extract the assistant message from an Ollama /api/chat response.

    Ollama's native endpoint returns:
    {
        "model": "...",
        "message": {"role": "assistant", "content": "..."},
        "done": true
    }
    """
    try:
        return data["message"]["content"]
    except (KeyError, TypeError):
        return None


class LLMClient:
    """
    HTTP client for an OpenAI-compatible chat API (Ollama included).

    Every call is a single attempt: network and HTTP errors propagate to the
    caller, which decides whether to offer a retry.
    """

    def __init__(self, config: LLMConfig):
        """
        Initialize LLM client.

        Args:
            config: LLM configuration (endpoint, API key, model)
        """
        self.config = config
        self.timeout = httpx.Timeout(
            connect=10.0,
            read=120.0,  # Whole-document rewrites are slow on local models
            write=10.0,
            pool=10.0
        )
        self._is_ollama: bool | None = None  # Cached provider detection

    def _base_url(self) -> str:
        base_url = str(self.config.endpoint).rstrip("/")
        # Ollama's native API lives beside its /v1 compatibility layer
        if base_url.endswith("/v1"):
            base_url = base_url[:-3]
        return base_url

    async def _detect_ollama(self) -> bool:
        """
        Detect if the LLM endpoint is Ollama by probing /api/version.

        The result is cached after the first call.
        """
        if self._is_ollama is not None:
            return self._is_ollama

        version_url = f"{self._base_url()}/api/version"
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(5.0)) as client:
                logger.debug("llm_provider_detection", version_url=version_url)
                response = await client.get(version_url)
                if response.status_code == 200:
                    logger.info("llm_provider_detected", provider="ollama", version_url=version_url)
                    self._is_ollama = True
                    return True
        except httpx.HTTPError as e:
            logger.debug(
                "llm_provider_detection_failed",
                error=str(e),
                assumed_provider="openai",
            )

        logger.info("llm_provider_detected", provider="openai")
        self._is_ollama = False
        return False

    def _build_payload(
        self,
        prompt: str,
        system_prompt: str,
        temperature: float,
        json_mode: bool,
        is_ollama: bool,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt}
            ],
            "stream": False,
            "temperature": temperature,
        }

        if is_ollama:
            options: Dict[str, Any] = {"num_predict": self.config.max_tokens}
            if self.config.num_ctx:
                options["num_ctx"] = self.config.num_ctx
            payload["options"] = options
            if json_mode:
                payload["format"] = "json"
        else:
            payload["max_tokens"] = self.config.max_tokens
            if json_mode:
                payload["response_format"] = {"type": "json_object"}

        return payload

    async def complete(
        self,
        prompt: str,
        system_prompt: str,
        temperature: Optional[float] = None,
        json_mode: bool = False,
        request_id: Optional[str] = None
    ) -> str:
        """
        Run one chat completion and return the assistant message text.

        Args:
            prompt: User prompt for the LLM
            system_prompt: System prompt for the LLM
            temperature: Sampling temperature (default: config value)
            json_mode: Constrain the response to a single JSON object
            request_id: Optional identifier for this request (for logging/tracing)

        Returns:
            Message content ("" if the response carried none)

        Raises:
            httpx.HTTPError: On network or HTTP errors (no retry)
        """
        if not request_id:
            current_task = asyncio.current_task()
            task_name = current_task.get_name() if current_task else None
            request_id = task_name if task_name and task_name != "None" else "unknown"

        if temperature is None:
            temperature = self.config.temperature

        is_ollama = await self._detect_ollama()
        payload = self._build_payload(prompt, system_prompt, temperature, json_mode, is_ollama)
        if is_ollama:
            url = self._base_url() + "/api/chat"
        else:
            url = str(self.config.endpoint).rstrip("/") + "/chat/completions"

        logger.info(
            "llm_request_started",
            request_id=request_id,
            model=self.config.model,
            endpoint=str(self.config.endpoint),
            provider="ollama" if is_ollama else "openai",
            prompt_length=len(prompt),
            system_prompt_length=len(system_prompt),
            json_mode=json_mode,
        )
        logger.debug("llm_request_payload", request_id=request_id, payload=payload)

        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                try:
                    data = response.json()
                except ValueError as e:
                    logger.error("llm_response_not_json", request_id=request_id, error=str(e))
                    raise MalformedCollaboratorResponse(response.text, "response body is not JSON") from e
        except httpx.HTTPStatusError as e:
            logger.error(
                "llm_http_error",
                request_id=request_id,
                status_code=e.response.status_code,
                error=str(e)
            )
            raise
        except httpx.HTTPError as e:
            logger.error("llm_request_failed", request_id=request_id, error=str(e))
            raise

        content = _extract_ollama_content(data) if is_ollama else _extract_openai_content(data)
        if content is None:
            logger.warning("llm_response_without_content", request_id=request_id, response=data)
            content = ""

        logger.info("llm_request_completed", request_id=request_id, response_length=len(content))
        logger.debug("llm_response_content", request_id=request_id, content=content)
        return content

    async def complete_json(self, prompt: str, system_prompt: str, **kwargs) -> str:
        """Completion constrained to a single JSON object (raw text returned)."""
        return await self.complete(prompt, system_prompt, json_mode=True, **kwargs)

    async def complete_text(self, prompt: str, system_prompt: str, **kwargs) -> str:
        """Free-text completion, whitespace-trimmed."""
        return (await self.complete(prompt, system_prompt, json_mode=False, **kwargs)).strip()
