import pytest

from dacnode.crypto import generate_private_key, keccak256, private_key_to_address
from dacnode.dactypes import ZERO_HASH, OffChainData, hex_to_address, hex_to_hash
from dacnode.sequence import (
    Batch,
    Sequence,
    SequenceBanana,
    SignedSequence,
    SignedSequenceBanana,
    calculate_acc_input_hash,
)


def _banana():
    return SequenceBanana(
        batches=[
            Batch(l2_data=bytes.fromhex("723473475757adadaddada"), coinbase=hex_to_address("aabbccddee")),
            Batch(
                l2_data=bytes.fromhex("723473475757adadaddada723473475757adadaddada"),
                coinbase=hex_to_address("aabbccddee"),
            ),
        ],
        old_acc_input_hash=hex_to_hash("abcdef0987654321"),
        l1_info_root=hex_to_hash("ffddeeaabb09876"),
        max_sequence_timestamp=78945,
    )


def test_signature_set_and_read_back_banana():
    signed = SignedSequenceBanana(signature=bytes([1, 2, 3]))
    assert signed.to_dict()["signature"] == "0x010203"
    assert SignedSequenceBanana.from_dict(signed.to_dict()).signature == bytes([1, 2, 3])


def test_empty_sequence_hash_is_zero():
    assert Sequence().hash_to_sign() == ZERO_HASH


def test_sequence_hash_depends_on_order():
    forward = Sequence([b"\x00\x01", b"\x02\x03"]).hash_to_sign()
    backward = Sequence([b"\x02\x03", b"\x00\x01"]).hash_to_sign()
    assert len(forward) == 32
    assert forward != backward


def test_sequence_offchain_data():
    seq = Sequence([b"\x00\x01", b"\x02\x03"])
    assert seq.offchain_data() == [
        OffChainData(keccak256(b"\x00\x01"), b"\x00\x01"),
        OffChainData(keccak256(b"\x02\x03"), b"\x02\x03"),
    ]
    assert SignedSequence(seq).offchain_data() == seq.offchain_data()


def test_signed_sequence_signer_round_trip():
    key = generate_private_key()
    seq = Sequence([b"\x00\x01", b"\x02\x03"])
    signed = SignedSequence(seq, seq.sign(key))
    assert signed.signer() == private_key_to_address(key)
    assert signed.sign(key) == signed.signature


def test_signer_rejects_empty_signature():
    with pytest.raises(ValueError, match="invalid signature"):
        SignedSequence(Sequence([b"\x00\x01"]), b"").signer()


def test_signer_of_other_sequence_differs():
    key = generate_private_key()
    signature = Sequence([b"\x00\x01"]).sign(key)
    recovered = SignedSequence(Sequence([b"\x02\x03"]), signature).signer()
    assert len(recovered) == 20
    assert recovered != private_key_to_address(key)


def test_sign_with_invalid_key_fails():
    with pytest.raises(ValueError):
        Sequence([b"\x00\x01"]).sign(0)
    with pytest.raises(ValueError):
        SequenceBanana().sign(0)


def test_signed_sequence_dict_round_trip():
    signed = SignedSequence(Sequence([b"\x00\x01", b"\x02\x03"]), b"")
    data = signed.to_dict()
    assert data == {"sequence": ["0x0001", "0x0203"], "signature": "0x"}
    assert SignedSequence.from_dict(data) == signed


def test_empty_banana_hash_is_old_acc_input_hash():
    seq = SequenceBanana(old_acc_input_hash=hex_to_hash("abcdef0987654321"))
    assert seq.hash_to_sign() == hex_to_hash("abcdef0987654321")
    assert seq.offchain_data() == []


def test_banana_hash_chains_batches():
    seq = _banana()
    first = calculate_acc_input_hash(
        seq.old_acc_input_hash,
        seq.batches[0].l2_data,
        seq.l1_info_root,
        seq.max_sequence_timestamp,
        seq.batches[0].coinbase,
        seq.batches[0].forced_block_hash_l1,
    )
    second = calculate_acc_input_hash(
        first,
        seq.batches[1].l2_data,
        seq.l1_info_root,
        seq.max_sequence_timestamp,
        seq.batches[1].coinbase,
        seq.batches[1].forced_block_hash_l1,
    )
    assert seq.hash_to_sign() == second


@pytest.mark.parametrize("position", range(6))
def test_acc_input_hash_depends_on_every_input(position):
    base = [ZERO_HASH, b"data", ZERO_HASH, 1, bytes(20), ZERO_HASH]
    changed = list(base)
    changed[position] = {0: b"\x01" * 32, 1: b"other", 2: b"\x02" * 32, 3: 2, 4: b"\x03" * 20, 5: b"\x04" * 32}[position]
    original = calculate_acc_input_hash(*base)
    assert len(original) == 32
    assert calculate_acc_input_hash(*changed) != original


def test_banana_signer_round_trip():
    key = generate_private_key()
    seq = _banana()
    signed = SignedSequenceBanana(seq, seq.sign(key))
    assert signed.signer() == private_key_to_address(key)
    assert signed.offchain_data() == seq.offchain_data()
    assert [od.value for od in signed.offchain_data()] == [b.l2_data for b in seq.batches]


def test_banana_dict_round_trip():
    seq = _banana()
    data = seq.to_dict()
    assert set(data) == {"batches", "oldAccInputhash", "l1InfoRoot", "maxSequenceTimestamp"}
    assert set(data["batches"][0]) == {
        "L2Data",
        "forcedGlobalExitRoot",
        "forcedTimestamp",
        "coinbase",
        "forcedBlockHashL1",
    }
    assert data["batches"][0]["L2Data"] == "0x723473475757adadaddada"
    assert SequenceBanana.from_dict(data) == seq
    signed = SignedSequenceBanana(seq, b"\x05")
    assert SignedSequenceBanana.from_dict(signed.to_dict()) == signed


def test_banana_from_dict_defaults():
    assert SequenceBanana.from_dict({}) == SequenceBanana()
    assert SignedSequenceBanana.from_dict({}) == SignedSequenceBanana()


@pytest.mark.parametrize("value", ["abcd", "0xabcd", "0x" + "zz" * 32])
def test_banana_from_dict_rejects_bad_hash(value):
    with pytest.raises(ValueError):
        SequenceBanana.from_dict({"l1InfoRoot": value})


def test_batch_from_dict_rejects_bad_coinbase():
    with pytest.raises(ValueError):
        Batch.from_dict({"coinbase": "0x" + "00" * 32})