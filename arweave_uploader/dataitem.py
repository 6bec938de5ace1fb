"""Signed ANS-104 data items accepted by the Turbo upload service."""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from arweave import Wallet
from arweave.deep_hash import deep_hash
from jose.exceptions import JOSEError
from jose.utils import base64url_decode, base64url_encode

SIGNATURE_TYPE_ARWEAVE = 1
PRIVATE_KEY_FIELDS = ("n", "e", "d")


@dataclass(frozen=True)
class Tag:
    name: str
    value: str


@dataclass
class DataItem:
    """Serialized data item ready to post, plus its transaction id."""

    id: str
    raw: bytes
    signature: bytes


class ArweaveSigner:
    """Signs data items with an Arweave JWK wallet."""

    signature_type = SIGNATURE_TYPE_ARWEAVE
    signature_length = 512
    owner_length = 512

    def __init__(self, wallet: Wallet) -> None:
        self.wallet = wallet

    @classmethod
    def from_jwk(cls, jwk: Dict[str, Any]) -> "ArweaveSigner":
        """Build a signer from a parsed JWK; raises ``ValueError`` for unusable keys."""
        if jwk.get("kty") != "RSA":
            raise ValueError(f"expected an RSA key, got kty={jwk.get('kty')!r}")
        missing = [name for name in PRIVATE_KEY_FIELDS if not isinstance(jwk.get(name), str)]
        if missing:
            raise ValueError(f"private key is missing {', '.join(missing)}")
        try:
            # Wallet.from_data writes into the dict it is given
            wallet = Wallet.from_data(dict(jwk))
        except (JOSEError, ValueError, TypeError) as exc:
            raise ValueError(f"not a usable RSA key: {exc}") from exc
        signer = cls(wallet)
        if len(signer.owner) != cls.owner_length:
            raise ValueError(
                f"modulus is {len(signer.owner) * 8} bits, expected {cls.owner_length * 8}"
            )
        return signer

    @property
    def owner(self) -> bytes:
        return base64url_decode(self.wallet.owner.encode("ascii"))

    def sign(self, message: bytes) -> bytes:
        return self.wallet.sign(message)


def _encode_long(value: int) -> bytes:
    zigzag = value << 1 if value >= 0 else ((-value) << 1) - 1
    out = bytearray()
    while True:
        byte = zigzag & 0x7F
        zigzag >>= 7
        if zigzag:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _encode_bytes(value: bytes) -> bytes:
    return _encode_long(len(value)) + value


def serialize_tags(tags: Sequence[Tag]) -> bytes:
    """Avro-encode tags as a single array block; no tags encode to nothing."""
    if not tags:
        return b""
    out = bytearray(_encode_long(len(tags)))
    for tag in tags:
        out += _encode_bytes(tag.name.encode("utf-8"))
        out += _encode_bytes(tag.value.encode("utf-8"))
    out += _encode_long(0)
    return bytes(out)


def signature_fields(signer, tag_bytes: bytes, data: bytes) -> List[bytes]:
    """Fields covered by the signature of a data item with no target or anchor."""
    return [
        b"dataitem",
        b"1",
        str(signer.signature_type).encode("ascii"),
        signer.owner,
        b"",
        b"",
        tag_bytes,
        data,
    ]


def create_data_item(signer, data: bytes, tags: Sequence[Tag]) -> DataItem:
    """Build and sign a data item without target or anchor."""
    owner = signer.owner
    if len(owner) != signer.owner_length:
        raise ValueError(
            f"owner is {len(owner)} bytes, expected {signer.owner_length}"
        )
    tag_bytes = serialize_tags(tags)
    signature = signer.sign(deep_hash(signature_fields(signer, tag_bytes, data)))
    if len(signature) != signer.signature_length:
        raise ValueError(
            f"signature is {len(signature)} bytes, expected {signer.signature_length}"
        )

    parts: List[bytes] = [
        struct.pack("<H", signer.signature_type),
        signature,
        owner,
        b"\x00",  # no target
        b"\x00",  # no anchor
        struct.pack("<Q", len(tags)),
        struct.pack("<Q", len(tag_bytes)),
        tag_bytes,
        data,
    ]
    item_id = base64url_encode(hashlib.sha256(signature).digest()).decode("ascii")
    return DataItem(id=item_id, raw=b"".join(parts), signature=signature)
