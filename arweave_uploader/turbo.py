"""Minimal client for the Turbo pricing and upload services."""

from __future__ import annotations

import json
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from .config import TurboConfig
from .dataitem import Tag, create_data_item
from .errors import TurboError
from .models import CostQuote
from .scanner import detect_content_type

logger = logging.getLogger("arweave_uploader.turbo")

MANIFEST_CONTENT_TYPE = "application/x.arweave-manifest+json"
DEFAULT_BINARY_TYPE = "application/octet-stream"
INDEX_FILE = "index.html"

SessionFactory = Callable[[], requests.Session]


@dataclass
class FileEvent:
    """Progress notification for one file in a folder upload."""

    file_name: str
    file_index: int
    total_files: int
    id: Optional[str] = None


class UploadObserver:
    """Receives folder upload progress; every hook is optional."""

    def on_file_start(self, event: FileEvent) -> None:
        pass

    def on_file_complete(self, event: FileEvent) -> None:
        pass

    def on_folder_progress(self, phase: str) -> None:
        pass

    def on_folder_error(self, error: Exception) -> None:
        pass


@dataclass
class FolderUploadResult:
    manifest: Dict[str, Any]
    file_responses: List[Dict[str, Any]] = field(default_factory=list)
    manifest_response: Dict[str, Any] = field(default_factory=dict)


def build_manifest(paths: Dict[str, str]) -> Dict[str, Any]:
    """Build an Arweave path manifest from relative path -> transaction id."""
    manifest: Dict[str, Any] = {"manifest": "arweave/paths", "version": "0.2.0"}
    if INDEX_FILE in paths:
        manifest["index"] = {"path": INDEX_FILE}
    manifest["paths"] = {name: {"id": item_id} for name, item_id in paths.items()}
    return manifest


def list_folder(folder: Path) -> List[Path]:
    return sorted(path for path in folder.rglob("*") if path.is_file())


class TurboUnauthenticatedClient:
    """Price queries; no wallet needed."""

    def __init__(
        self,
        config: Optional[TurboConfig] = None,
        session_factory: SessionFactory = requests.Session,
    ) -> None:
        self.config = config or TurboConfig()
        self.session_factory = session_factory
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """The calling thread's session; upload workers never share one."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = self._local.session = self.session_factory()
        return session

    def _raise_for_status(self, resp: requests.Response, action: str) -> None:
        if resp.status_code == 402:
            raise TurboError(
                f"{action} failed: insufficient balance (HTTP 402) {resp.text}".strip(),
                status=resp.status_code,
            )
        if resp.status_code >= 400:
            raise TurboError(
                f"{action} failed with HTTP {resp.status_code}: {resp.text}".strip(),
                status=resp.status_code,
            )

    def get_upload_costs(self, byte_counts: Sequence[int]) -> List[CostQuote]:
        """Return one quote per byte count, in the order given."""
        quotes: List[CostQuote] = []
        for byte_count in byte_counts:
            url = f"{self.config.payment_url}/v1/price/bytes/{int(byte_count)}"
            try:
                resp = self.session.get(url, timeout=self.config.timeout)
            except requests.RequestException as exc:
                raise TurboError(f"Price request failed: {exc}") from exc
            self._raise_for_status(resp, "Price request")
            payload = resp.json()
            logger.debug("Price for %s bytes: %s", byte_count, payload)
            quotes.append(CostQuote(byte_count=int(byte_count), winc=int(payload["winc"])))
        return quotes


class TurboAuthenticatedClient(TurboUnauthenticatedClient):
    """Signs and uploads data items on behalf of a wallet."""

    def __init__(
        self,
        signer,
        config: Optional[TurboConfig] = None,
        session_factory: SessionFactory = requests.Session,
    ) -> None:
        super().__init__(config, session_factory)
        self.signer = signer

    def upload_file(self, data: bytes, tags: Sequence[Tag] = ()) -> Dict[str, Any]:
        item = create_data_item(self.signer, data, tags)
        url = f"{self.config.upload_url}/v1/tx"
        try:
            resp = self.session.post(
                url,
                data=item.raw,
                headers={"Content-Type": "application/octet-stream"},
                timeout=self.config.timeout,
            )
        except requests.RequestException as exc:
            raise TurboError(f"Upload request failed: {exc}") from exc
        self._raise_for_status(resp, "Upload")
        payload = resp.json()
        payload.setdefault("id", item.id)
        return payload

    def _upload_one(
        self,
        path: Path,
        name: str,
        index: int,
        total: int,
        tags: Sequence[Tag],
        content_type: Optional[str],
        events: UploadObserver,
    ) -> Dict[str, Any]:
        events.on_file_start(FileEvent(name, index, total))
        data = path.read_bytes()
        mime = detect_content_type(data) or content_type or DEFAULT_BINARY_TYPE
        response = self.upload_file(data, [Tag("Content-Type", mime), *tags])
        events.on_file_complete(FileEvent(name, index, total, id=response["id"]))
        return response

    def upload_folder(
        self,
        folder_path: Path,
        max_concurrent_uploads: int = 5,
        tags: Sequence[Tag] = (),
        content_type: Optional[str] = None,
        events: Optional[UploadObserver] = None,
    ) -> FolderUploadResult:
        """Upload every file below ``folder_path`` and then its path manifest."""
        events = events or UploadObserver()
        folder = Path(folder_path)
        files = list_folder(folder)
        names = [path.relative_to(folder).as_posix() for path in files]
        total = len(files)

        events.on_folder_progress("files")
        with ThreadPoolExecutor(max_workers=max(1, max_concurrent_uploads)) as pool:
            futures = [
                pool.submit(
                    self._upload_one, path, name, index, total, tags, content_type, events
                )
                for index, (path, name) in enumerate(zip(files, names))
            ]
            try:
                responses = [future.result() for future in futures]
            except Exception as exc:
                for future in futures:
                    future.cancel()
                events.on_folder_error(exc)
                raise

        manifest = build_manifest(
            {name: response["id"] for name, response in zip(names, responses)}
        )
        events.on_folder_progress("manifest")
        try:
            manifest_response = self.upload_file(
                json.dumps(manifest).encode("utf-8"),
                [Tag("Content-Type", MANIFEST_CONTENT_TYPE), *tags],
            )
        except Exception as exc:
            events.on_folder_error(exc)
            raise
        return FolderUploadResult(
            manifest=manifest,
            file_responses=responses,
            manifest_response=manifest_response,
        )


class TurboFactory:
    @staticmethod
    def unauthenticated(
        config: Optional[TurboConfig] = None,
        session_factory: SessionFactory = requests.Session,
    ) -> TurboUnauthenticatedClient:
        return TurboUnauthenticatedClient(config, session_factory)

    @staticmethod
    def authenticated(
        signer,
        config: Optional[TurboConfig] = None,
        session_factory: SessionFactory = requests.Session,
    ) -> TurboAuthenticatedClient:
        return TurboAuthenticatedClient(signer, config, session_factory)
