"""Document stores keyed by URL."""

from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from .document import StoredDocument

LOGGER = logging.getLogger(__name__)


class DocumentStore(Protocol):
    """Key-value store of previously fetched documents."""

    def put(self, url: str, document: StoredDocument) -> None: ...

    def get(self, url: str) -> Optional[StoredDocument]: ...

    def has(self, url: str) -> bool: ...

    def list(self) -> List[str]: ...


class MemoryDocumentStore:
    """Process-local store, mostly for tests and one-shot runs."""

    def __init__(self) -> None:
        self._documents: Dict[str, StoredDocument] = {}

    def put(self, url: str, document: StoredDocument) -> None:
        self._documents[url] = document

    def get(self, url: str) -> Optional[StoredDocument]:
        return self._documents.get(url)

    def has(self, url: str) -> bool:
        return url in self._documents

    def list(self) -> List[str]:
        return list(self._documents)

    def __len__(self) -> int:
        return len(self._documents)


def _url_to_filename(url: str) -> str:
    """Stable, filesystem-safe file name for url."""
    digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
    return f"{digest}.json"


class FileDocumentStore:
    """Store that keeps one JSON file per URL in a directory."""

    def __init__(self, directory: Path | str):
        self.directory = Path(directory)

    def _path(self, url: str) -> Path:
        return self.directory / _url_to_filename(url)

    def put(self, url: str, document: StoredDocument) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = {"url": url, "document": document.to_dict()}
        self._path(url).write_text(
            json.dumps(payload, ensure_ascii=False), encoding="utf-8"
        )

    def get(self, url: str) -> Optional[StoredDocument]:
        path = self._path(url)
        if not path.is_file():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            return StoredDocument.from_dict(payload["document"])
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            LOGGER.warning("Unreadable store entry for %s: %s", url, exc)
            return None

    def has(self, url: str) -> bool:
        return self._path(url).is_file()

    def list(self) -> List[str]:
        if not self.directory.is_dir():
            return []
        urls: List[str] = []
        for path in sorted(self.directory.glob("*.json")):
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                LOGGER.warning("Skipping unreadable store file %s: %s", path, exc)
                continue
            url = payload.get("url") if isinstance(payload, dict) else None
            if isinstance(url, str) and url:
                urls.append(url)
        return urls
