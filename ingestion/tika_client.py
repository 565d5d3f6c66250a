from __future__ import annotations

import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from common.config import TikaConfig
from common.logger import get_logger
from ingestion.cleaners import clean_extracted_text

log = get_logger(__name__)


class ExtractionError(Exception):
    """Text could not be extracted from a document."""


class ExtractionUnavailableError(ExtractionError):
    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class EmptyExtractionError(ExtractionError):
    pass


class TikaClient:
    """
    Thin client for an Apache Tika server: PUT the raw document bytes,
    get plain text back.
    """

    def __init__(self, endpoint: str | None = None, timeout: int | None = None):
        defaults = TikaConfig()
        self.endpoint = endpoint or defaults.endpoint
        self.timeout = timeout or defaults.timeout

    @classmethod
    def from_config(cls, cfg: TikaConfig) -> "TikaClient":
        return cls(endpoint=cfg.endpoint, timeout=cfg.timeout)

    @retry(
        retry=retry_if_exception_type(requests.ConnectionError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    def _put(self, data: bytes) -> requests.Response:
        return requests.put(
            self.endpoint,
            data=data,
            headers={
                "Accept": "text/plain",
                "Content-Type": "application/octet-stream",
            },
            timeout=self.timeout,
        )

    def extract_text(self, data: bytes) -> str:
        try:
            resp = self._put(data)
        except requests.RequestException as e:
            log.error("Tika request to %s failed: %s", self.endpoint, e)
            raise ExtractionUnavailableError(
                f"Could not reach Tika at {self.endpoint}. Is the server running?"
            ) from e

        if not resp.ok:
            raise ExtractionUnavailableError(
                f"Tika API error: {resp.status_code} {resp.reason}",
                status=resp.status_code,
            )

        # requests assumes ISO-8859-1 for text/* without a charset
        if "charset" not in resp.headers.get("Content-Type", "").lower():
            resp.encoding = "utf-8"
        text = resp.text
        if not text or not text.strip():
            raise EmptyExtractionError(
                "Tika returned no text. The file may have no text layer or an unsupported format."
            )

        cleaned = clean_extracted_text(text)
        log.info("Tika extracted %d chars (%d after cleaning)", len(text), len(cleaned))
        return cleaned
