from __future__ import annotations

from typing import Any, Protocol

import orjson
import requests
from langchain_core.language_models import BaseLanguageModel
from langchain_ollama import OllamaLLM
from ollama import ResponseError

from common.config import LLMConfig
from common.logger import get_logger
from generation.errors import BackendUnavailableError, MalformedOutputError

log = get_logger(__name__)


class GenerationBackend(Protocol):
    def complete(self, prompt: str, structured_output: bool = True) -> str:
        ...


class OllamaBackend:
    """
    Calls Ollama's ``/api/generate`` directly so HTTP status codes can be
    reported back to the caller.
    """

    def __init__(
        self,
        endpoint: str,
        model: str,
        temperature: float = 0.2,
        timeout: int | None = 300,
    ):
        self.endpoint = endpoint
        self.model = model
        self.temperature = temperature
        self.timeout = timeout

    def complete(self, prompt: str, structured_output: bool = True) -> str:
        body: dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {"temperature": self.temperature},
        }
        if structured_output:
            body["format"] = "json"

        log.info("Calling %s (model=%s, prompt=%d chars)", self.endpoint, self.model, len(prompt))
        try:
            resp = requests.post(self.endpoint, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            log.error("Ollama request failed: %s", e)
            raise BackendUnavailableError(
                f"Could not reach Ollama at {self.endpoint}. Is the server running?"
            ) from e

        if resp.status_code == 404:
            raise BackendUnavailableError(
                f"Ollama endpoint not found. Check that the server runs at {self.endpoint} "
                f"and that model '{self.model}' has been pulled.",
                status=404,
            )
        if not resp.ok:
            log.error("Ollama error response (%d): %.500s", resp.status_code, resp.text)
            raise BackendUnavailableError(
                f"Ollama API error: {resp.status_code} {resp.reason}. Model: {self.model}",
                status=resp.status_code,
            )

        try:
            data = orjson.loads(resp.content)
        except orjson.JSONDecodeError:
            return resp.text

        return self._response_text(data)

    def _response_text(self, data: Any) -> str:
        if isinstance(data, dict):
            if isinstance(data.get("response"), str):
                duration = data.get("total_duration")
                log.info(
                    "Ollama done: model=%s eval_count=%s duration=%s",
                    data.get("model"),
                    data.get("eval_count"),
                    f"{duration / 1e9:.2f}s" if isinstance(duration, (int, float)) else None,
                )
                return data["response"]
            if data.get("error"):
                raise BackendUnavailableError(f"Ollama reported an error: {data['error']}")
        if isinstance(data, list):
            return orjson.dumps(data).decode("utf-8")
        if isinstance(data, str):
            return data
        raise MalformedOutputError(
            f"Unexpected Ollama response format: {type(data).__name__}",
            excerpt=orjson.dumps(data).decode("utf-8")[:200],
        )


class LangChainBackend:
    """
    Adapter for any LangChain LLM. Structured output is decided when the LLM
    is built (see ``load_local_llm``), so the per-call flag is not forwarded.
    """

    def __init__(self, llm: BaseLanguageModel):
        self.llm = llm

    def complete(self, prompt: str, structured_output: bool = True) -> str:
        try:
            result = self.llm.invoke(prompt)
        except ResponseError as e:
            log.error("Ollama error response (%d): %s", e.status_code, e.error)
            status = e.status_code if e.status_code > 0 else None
            raise BackendUnavailableError(f"Ollama API error: {e.error}", status=status) from e
        except Exception as e:
            log.error("LLM invocation failed: %s", e, exc_info=True)
            raise BackendUnavailableError(f"LLM invocation failed: {e}") from e
        return str(getattr(result, "content", result))


def _base_url(endpoint: str) -> str:
    return endpoint.split("/api/", 1)[0]


def load_local_llm(cfg: LLMConfig, structured_output: bool = True) -> OllamaLLM:
    return OllamaLLM(
        model=cfg.model_name,
        temperature=cfg.temperature,
        base_url=_base_url(cfg.endpoint),
        format="json" if structured_output else "",
        client_kwargs={"timeout": cfg.timeout},
    )


def build_backend(cfg: LLMConfig) -> GenerationBackend:
    if cfg.provider == "ollama":
        return OllamaBackend(
            endpoint=cfg.endpoint,
            model=cfg.model_name,
            temperature=cfg.temperature,
            timeout=cfg.timeout,
        )
    if cfg.provider == "langchain":
        return LangChainBackend(load_local_llm(cfg))
    raise ValueError(f"Unsupported provider: {cfg.provider}")
