"""Keccak hashing and secp256k1 signatures in the Ethereum style."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Iterator

from Crypto.Hash import keccak

_P = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F
_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
_G = (
    0x79BE667EF9DCBBAC55A06295CE870B07029BFCDB2DCE28D959F2815B16F81798,
    0x483ADA7726A3C4655DA4FBFC0E1108A8FD17B448A68554199C47D08FFB10D4B8,
)
# Largest S value a canonical (low-S) signature may carry.
_HALF_N = 0x7FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF5D576E7357A4501DDFE92F46681B20A0

_SIGNATURE_LENGTH = 65
_DIGEST_LENGTH = 32
_BYTE_ORDER = "big"

Point = tuple[int, int]


class NonCanonicalSignatureError(ValueError):
    """Raised when a produced signature is not in canonical low-S form."""

    def __init__(self) -> None:
        super().__init__("received non-canonical signature")


def keccak256(*args: bytes) -> bytes:
    """Keccak-256 of the concatenation of the given byte strings."""
    digest = keccak.new(digest_bits=256)
    for data in args:
        digest.update(bytes(data))
    return digest.digest()


def _add(a: Point | None, b: Point | None) -> Point | None:
    if a is None:
        return b
    if b is None:
        return a
    x1, y1 = a
    x2, y2 = b
    if x1 == x2:
        if (y1 + y2) % _P == 0:
            return None
        slope = 3 * x1 * x1 * pow(2 * y1, -1, _P) % _P
    else:
        slope = (y2 - y1) * pow(x2 - x1, -1, _P) % _P
    x3 = (slope * slope - x1 - x2) % _P
    return x3, (slope * (x1 - x3) - y1) % _P


def _multiply(scalar: int, point: Point) -> Point | None:
    result: Point | None = None
    addend: Point | None = point
    while scalar:
        if scalar & 1:
            result = _add(result, addend)
        addend = _add(addend, addend)
        scalar >>= 1
    return result


def _check_digest(digest: bytes) -> None:
    if len(digest) != _DIGEST_LENGTH:
        raise ValueError(f"hash is required to be exactly {_DIGEST_LENGTH} bytes ({len(digest)})")


def _check_private_key(private_key: int) -> None:
    if not 0 < private_key < _N:
        raise ValueError("invalid private key")


def _address_of(point: Point) -> bytes:
    x, y = point
    return keccak256(x.to_bytes(32, _BYTE_ORDER), y.to_bytes(32, _BYTE_ORDER))[12:]


def generate_private_key() -> int:
    """Return a fresh random secp256k1 private key."""
    return secrets.randbelow(_N - 1) + 1


def private_key_to_address(private_key: int) -> bytes:
    """Return the 20-byte address belonging to a private key."""
    _check_private_key(private_key)
    return _address_of(_multiply(private_key, _G))


def _nonces(private_key: int, digest: bytes) -> Iterator[int]:
    """Deterministic nonces as in RFC 6979 with HMAC-SHA256."""

    def mac(mac_key: bytes, data: bytes) -> bytes:
        return hmac.new(mac_key, data, hashlib.sha256).digest()

    key_octets = private_key.to_bytes(32, _BYTE_ORDER)
    message = (int.from_bytes(digest, _BYTE_ORDER) % _N).to_bytes(32, _BYTE_ORDER)
    v = b"\x01" * 32
    k = b"\x00" * 32
    k = mac(k, v + b"\x00" + key_octets + message)
    v = mac(k, v)
    k = mac(k, v + b"\x01" + key_octets + message)
    v = mac(k, v)
    while True:
        v = mac(k, v)
        candidate = int.from_bytes(v, _BYTE_ORDER)
        if 1 <= candidate < _N:
            yield candidate
        k = mac(k, v + b"\x00")
        v = mac(k, v)


def sign(private_key: int, hash_to_sign: bytes) -> bytes:
    """Sign a 32-byte hash, returning R || S || V with V being 27 or 28."""
    _check_digest(hash_to_sign)
    _check_private_key(private_key)
    z = int.from_bytes(hash_to_sign, _BYTE_ORDER)
    for k in _nonces(private_key, hash_to_sign):
        point = _multiply(k, _G)
        r = point[0] % _N
        if r == 0:
            continue
        s = pow(k, -1, _N) * (z + r * private_key) % _N
        if s == 0:
            continue
        recovery_id = (point[1] & 1) | (2 if point[0] >= _N else 0)
        if s > _HALF_N:
            s = _N - s
            recovery_id ^= 1
        break
    if s > _HALF_N:
        raise NonCanonicalSignatureError()
    return r.to_bytes(32, _BYTE_ORDER) + s.to_bytes(32, _BYTE_ORDER) + bytes([recovery_id + 27])


def recover_address(hash_to_sign: bytes, signature: bytes) -> bytes:
    """Recover the signer's address from a signature made by :func:`sign`."""
    if len(signature) != _SIGNATURE_LENGTH:
        raise ValueError("invalid signature")
    _check_digest(hash_to_sign)
    r = int.from_bytes(signature[:32], _BYTE_ORDER)
    s = int.from_bytes(signature[32:64], _BYTE_ORDER)
    recovery_id = (signature[64] - 27) & 0xFF
    if recovery_id > 3:
        raise ValueError("invalid signature recovery id")
    if not (0 < r < _N and 0 < s < _N):
        raise ValueError("invalid signature values")
    x = r + _N if recovery_id & 2 else r
    if x >= _P:
        raise ValueError("invalid signature: point x out of range")
    alpha = (pow(x, 3, _P) + 7) % _P
    y = pow(alpha, (_P + 1) // 4, _P)
    if y * y % _P != alpha:
        raise ValueError("invalid signature: no curve point for r")
    if (y & 1) != (recovery_id & 1):
        y = _P - y
    e = int.from_bytes(hash_to_sign, _BYTE_ORDER)
    r_inv = pow(r, -1, _N)
    public = _add(_multiply(s * r_inv % _N, (x, y)), _multiply(-e * r_inv % _N, _G))
    if public is None:
        raise ValueError("invalid signature: recovered point at infinity")
    return _address_of(public)