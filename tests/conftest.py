from __future__ import annotations

import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jose.utils import base64url_encode
from PIL import Image

from arweave_uploader.models import CostQuote
from arweave_uploader.turbo import (
    FileEvent,
    FolderUploadResult,
    UploadObserver,
    build_manifest,
    list_folder,
)


def write_image(
    path: Path,
    size: Tuple[int, int] = (64, 48),
    mode: str = "RGB",
    fmt: Optional[str] = None,
    color: Any = (200, 40, 40),
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path, format=fmt)
    return path


class FakeSigner:
    signature_type = 1
    signature_length = 512
    owner_length = 512

    def __init__(self) -> None:
        self.owner = bytes(range(256)) * 2
        self.messages: List[bytes] = []

    def sign(self, message: bytes) -> bytes:
        self.messages.append(message)
        return hashlib.sha512(message).digest() * 8


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Optional[Dict[str, Any]] = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload if payload is not None else {}
        self.text = text

    def json(self) -> Dict[str, Any]:
        return dict(self._payload)


class FakeSession:
    """Stands in for requests.Session; records every call."""

    def __init__(self, get_response: Optional[FakeResponse] = None, post_responses: Optional[List[FakeResponse]] = None) -> None:
        self.get_response = get_response or FakeResponse(payload={"winc": "1000"})
        self.post_responses = list(post_responses or [])
        self.gets: List[str] = []
        self.posts: List[Dict[str, Any]] = []

    def get(self, url: str, timeout: float = 0) -> FakeResponse:
        self.gets.append(url)
        return self.get_response

    def post(self, url: str, data: bytes = b"", headers: Optional[Dict[str, str]] = None, timeout: float = 0) -> FakeResponse:
        self.posts.append({"url": url, "data": data, "headers": headers or {}})
        if self.post_responses:
            return self.post_responses.pop(0)
        return FakeResponse(payload={})


class FakePricingClient:
    """Quotes 1000 winc per byte."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[List[int]] = []

    def get_upload_costs(self, byte_counts):
        self.calls.append(list(byte_counts))
        if self.error:
            raise self.error
        return [CostQuote(byte_count=count, winc=count * 1000) for count in byte_counts]


class FakeTurboClient:
    """Uploads nothing; assigns ``tx-<name>`` ids and reports progress."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def upload_folder(self, folder_path, max_concurrent_uploads=5, tags=(), content_type=None, events=None):
        events = events or UploadObserver()
        self.calls.append(
            {
                "folder": Path(folder_path),
                "max_concurrent_uploads": max_concurrent_uploads,
                "tags": list(tags),
                "content_type": content_type,
            }
        )
        if self.error:
            events.on_folder_error(self.error)
            raise self.error
        files = list_folder(Path(folder_path))
        names = [path.relative_to(folder_path).as_posix() for path in files]
        responses = []
        for index, name in enumerate(names):
            events.on_file_start(FileEvent(name, index, len(names)))
            responses.append({"id": f"tx-{name}"})
            events.on_file_complete(FileEvent(name, index, len(names), id=f"tx-{name}"))
        events.on_folder_progress("manifest")
        manifest = build_manifest({name: resp["id"] for name, resp in zip(names, responses)})
        return FolderUploadResult(
            manifest=manifest,
            file_responses=responses,
            manifest_response={"id": "manifest-123"},
        )


@pytest.fixture(autouse=True)
def _restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture(scope="session")
def wallet_jwk() -> Dict[str, str]:
    """A throwaway RSA-4096 JWK in the Arweave wallet format."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=4096)
    private = key.private_numbers()
    fields = {
        "n": private.public_numbers.n,
        "e": private.public_numbers.e,
        "d": private.d,
        "p": private.p,
        "q": private.q,
        "dp": private.dmp1,
        "dq": private.dmq1,
        "qi": private.iqmp,
    }
    jwk = {"kty": "RSA"}
    for name, value in fields.items():
        jwk[name] = _b64url_int(value)
    return jwk


def _b64url_int(value: int) -> str:
    return base64url_encode(value.to_bytes((value.bit_length() + 7) // 8, "big")).decode("ascii")


@pytest.fixture
def wallet_file(tmp_path: Path, wallet_jwk: Dict[str, str]) -> Path:
    path = tmp_path / "wallet.json"
    path.write_text(json.dumps(wallet_jwk), encoding="utf-8")
    return path
