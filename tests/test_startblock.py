from types import SimpleNamespace
from unittest.mock import Mock, call

import pytest

from dacnode.dactypes import hex_to_address
from dacnode.synchronizer.startblock import (
    find_code,
    find_contract_deployment_block,
    init_start_block,
)

VALIDIUM = hex_to_address("0xCDKValidium")


def test_get_last_processed_block_returns_error():
    db = Mock()
    db.get_last_processed_block.side_effect = RuntimeError("can't get last processed block")
    client = Mock()
    with pytest.raises(RuntimeError, match="can't get last processed block"):
        init_start_block(db, client, 0, VALIDIUM)
    assert db.store_last_processed_block.call_count == 0


def test_no_need_to_resolve_start_block():
    db = Mock()
    db.get_last_processed_block.return_value = 10
    client = Mock()
    init_start_block(db, client, 0, VALIDIUM)
    assert db.store_last_processed_block.call_count == 0
    assert client.header_by_number.call_count == 0


def test_cannot_get_block_from_eth_client():
    db = Mock()
    db.get_last_processed_block.return_value = 0
    client = Mock()
    client.header_by_number.side_effect = RuntimeError("error")
    with pytest.raises(RuntimeError, match="error"):
        init_start_block(db, client, 0, VALIDIUM)
    assert db.store_last_processed_block.call_count == 0


def test_store_fails():
    db = Mock()
    db.get_last_processed_block.return_value = 0
    db.store_last_processed_block.side_effect = RuntimeError("error")
    client = Mock()
    client.header_by_number.return_value = SimpleNamespace(number=0)
    with pytest.raises(RuntimeError, match="error"):
        init_start_block(db, client, 0, VALIDIUM)
    assert db.store_last_processed_block.call_args == call(0, "L1")


def test_successful_init():
    db = Mock()
    db.get_last_processed_block.return_value = 0
    client = Mock()
    client.header_by_number.return_value = SimpleNamespace(number=3)

    def code_at(address, block_number):
        if block_number == 1:
            raise RuntimeError("error")
        return bytes([1, 2, 3, 4, 5])

    client.code_at.side_effect = code_at

    init_start_block(db, client, 0, VALIDIUM)

    assert client.code_at.call_args_list == [call(VALIDIUM, 1), call(VALIDIUM, 2)]
    assert db.store_last_processed_block.call_args == call(2, "L1")


def test_genesis_block_is_used_directly():
    db = Mock()
    db.get_last_processed_block.return_value = 0
    client = Mock()
    init_start_block(db, client, 42, VALIDIUM)
    assert db.store_last_processed_block.call_args == call(42, "L1")
    assert client.header_by_number.call_count == 0


def test_find_code_locates_first_block_with_code():
    deployed_at = 7
    client = Mock()
    client.code_at.side_effect = lambda address, n: b"\x60\x80\x60" if n >= deployed_at else b""
    assert find_code(client, VALIDIUM, 0, 20) == deployed_at


def test_find_code_treats_short_code_as_absent():
    client = Mock()
    client.code_at.return_value = b"\x00\x00"
    assert find_code(client, VALIDIUM, 0, 9) == 9


def test_find_contract_deployment_block_uses_latest_header():
    client = Mock()
    client.header_by_number.return_value = SimpleNamespace(number=15)
    client.code_at.side_effect = lambda address, n: b"\x01\x02\x03" if n >= 4 else b""
    assert find_contract_deployment_block(client, VALIDIUM) == 4
    assert client.header_by_number.call_args == call(None)