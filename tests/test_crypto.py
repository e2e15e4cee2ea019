import pytest

from dacnode.crypto import (
    generate_private_key,
    keccak256,
    private_key_to_address,
    recover_address,
    sign,
)

_HALF_N = 0x7FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFF5D576E7357A4501DDFE92F46681B20A0


@pytest.mark.parametrize(
    "signature,expected",
    [
        ("sequenceBatchesValidium((bytes32,bytes32,uint64,bytes32)[],address,bytes)", "2d72c248"),
        (
            "sequenceBatchesValidium((bytes32,bytes32,uint64,bytes32)[],uint64,uint64,address,bytes)",
            "db5b0ed7",
        ),
        (
            "sequenceBatchesValidium((bytes32,bytes32,uint64,bytes32)[],uint32,uint64,bytes32,address,bytes)",
            "165e8a8d",
        ),
    ],
)
def test_keccak256_method_ids(signature, expected):
    assert keccak256(signature.encode())[:4].hex() == expected


def test_keccak256_concatenates_arguments():
    assert keccak256(b"ab", b"cd") == keccak256(b"abcd")
    assert len(keccak256()) == 32


def test_address_of_private_key_one():
    assert private_key_to_address(1).hex() == "7e5f4552091a69125d5dfcb7b8c2659029395bdf"


def test_generated_key_in_range():
    key = generate_private_key()
    assert 0 < key < 2 * _HALF_N + 1


def test_sign_and_recover_round_trip():
    key = generate_private_key()
    digest = keccak256(b"payload")
    signature = sign(key, digest)
    assert recover_address(digest, signature) == private_key_to_address(key)


def test_signature_shape():
    signature = sign(generate_private_key(), keccak256(b"data"))
    assert len(signature) == 65
    assert signature[64] in (27, 28)
    assert int.from_bytes(signature[32:64], "big") <= _HALF_N


def test_signing_is_deterministic_and_recoverable():
    digest = keccak256(b"data")
    first = sign(7, digest)
    second = sign(7, digest)
    assert first == second
    assert recover_address(digest, first) == private_key_to_address(7)


def test_zero_hash_can_be_signed():
    signature = sign(3, bytes(32))
    assert recover_address(bytes(32), signature) == private_key_to_address(3)


def test_sign_rejects_zero_key():
    with pytest.raises(ValueError, match="invalid private key"):
        sign(0, keccak256(b"data"))


def test_sign_rejects_short_hash():
    with pytest.raises(ValueError, match="32 bytes"):
        sign(5, b"\x01\x02")


def test_recover_rejects_wrong_length():
    with pytest.raises(ValueError, match="invalid signature"):
        recover_address(keccak256(b"data"), b"\x00" * 64)


def test_recover_rejects_bad_recovery_id():
    signature = bytearray(sign(5, keccak256(b"data")))
    signature[64] = 40
    with pytest.raises(ValueError):
        recover_address(keccak256(b"data"), bytes(signature))


def test_recover_other_hash_gives_other_address():
    key = generate_private_key()
    signature = sign(key, keccak256(b"one"))
    recovered = recover_address(keccak256(b"two"), signature)
    assert len(recovered) == 20
    assert recovered != private_key_to_address(key)