"""Document sources — turn a source identifier into normalised Markdown text."""

from __future__ import annotations

import logging
import re
import unicodedata
from abc import ABC, abstractmethod
from pathlib import Path

import requests
from bs4 import BeautifulSoup
from markdownify import markdownify

from docrag.config import settings
from docrag.errors import FetchError

logger = logging.getLogger(__name__)

_BOILERPLATE_TAGS = ["script", "style", "nav", "footer", "header", "aside", "noscript", "iframe"]


def normalise_text(text: str) -> str:
    """Unicode NFC, collapse whitespace, strip control chars."""
    text = unicodedata.normalize("NFC", text)
    text = re.sub(r"[^\S\n]+", " ", text)  # collapse spaces (keep \n)
    text = re.sub(r"\n{3,}", "\n\n", text)  # max two consecutive newlines
    text = re.sub(r"[\x00-\x08\x0b\x0c\x0e-\x1f]", "", text)
    return text.strip()


class DocumentSource(ABC):
    """Converts a resource identifier into normalised text."""

    @abstractmethod
    def fetch(self, source_id: str) -> str:
        """Return the text behind *source_id* or raise :class:`FetchError`."""
        ...


class _HttpSource(DocumentSource):
    def __init__(
        self,
        *,
        timeout: float = settings.request_timeout,
        session: requests.Session | None = None,
    ) -> None:
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get(self, url: str, **kwargs) -> requests.Response:
        try:
            resp = self._session.get(url, timeout=self.timeout, **kwargs)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}") from exc
        return resp


class MarkdownServiceSource(_HttpSource):
    """Delegates URL → Markdown conversion to a remote conversion service.

    The service is called as ``GET {service_url}?url=<source>`` and answers
    with the Markdown rendering of the page.
    """

    def __init__(
        self,
        service_url: str = settings.markdown_service_url,
        *,
        timeout: float = settings.request_timeout,
        session: requests.Session | None = None,
    ) -> None:
        super().__init__(timeout=timeout, session=session)
        self.service_url = service_url

    def fetch(self, source_id: str) -> str:
        resp = self._get(self.service_url, params={"url": source_id})
        logger.info("Converted %s to Markdown (%d chars)", source_id, len(resp.text))
        return resp.text


class HtmlMarkdownSource(_HttpSource):
    """Downloads a page and converts it to Markdown locally."""

    def fetch(self, source_id: str) -> str:
        resp = self._get(source_id)
        ctype = resp.headers.get("content-type", "")
        if "markdown" in ctype or "text/plain" in ctype or source_id.endswith((".md", ".mdx")):
            return normalise_text(resp.text)

        soup = BeautifulSoup(resp.text, "html.parser")
        for tag in soup(_BOILERPLATE_TAGS):
            tag.decompose()
        body = soup.body or soup
        text = normalise_text(markdownify(str(body), heading_style="ATX"))
        logger.info("Fetched %s (%d chars)", source_id, len(text))
        return text


class FileSource(DocumentSource):
    """Reads a local UTF-8 text or Markdown file."""

    def fetch(self, source_id: str) -> str:
        path = Path(source_id)
        try:
            raw = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise FetchError(f"Failed to read {source_id}: {exc}") from exc
        return normalise_text(raw)


def get_document_source(kind: str = settings.document_source) -> DocumentSource:
    """Return the document source registered under *kind*."""
    sources = {
        "markdown_service": MarkdownServiceSource,
        "html": HtmlMarkdownSource,
        "file": FileSource,
    }
    try:
        return sources[kind]()
    except KeyError:
        raise ValueError(
            f"Unsupported document source {kind!r}. Choose from: {', '.join(sources)}."
        ) from None
