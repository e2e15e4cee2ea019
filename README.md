# dacnode

`dacnode` provides the building blocks of a node in a data availability
committee (DAC) for a validium rollup.

## What is in the package

- **Sequences and signatures** (`dacnode.sequence`, `dacnode.crypto`).
  `Sequence` and `SequenceBanana` compute the accumulated input hash of a
  sequence with `hash_to_sign()`. They sign it with `sign(private_key)` and
  return the batch data to keep off chain with `offchain_data()`.
  `SignedSequence` and `SignedSequenceBanana` also recover the signer's
  address with `signer()`, and convert to and from JSON-style dicts with
  `to_dict()` and `from_dict()`. `dacnode.crypto` has `keccak256`,
  `generate_private_key`, `private_key_to_address`, `sign` (65-byte
  R‖S‖V signatures with V of 27 or 28, low-S only) and `recover_address`.
- **Wire types** (`dacnode.dactypes`). This module defines `BatchKey`,
  `OffChainData`, `DACStatus` and `remove_duplicate_offchain_data`. It also
  has hex helpers: `format_uint64`/`parse_uint64`, `encode_hex`/`decode_hex`,
  `parse_arg_bytes`, `parse_arg_hash`, `parse_big`/`format_big`,
  `hex_encode_big`, `is_hex_valid`, `hex_to_hash`, `hex_to_address` and
  `bytes_to_hash`.
- **Errors** (`dacnode.errors`). `RPCError` carries a JSON-RPC error code
  and a message.
- **Synchronisation** (`dacnode.synchronizer`):
  - `batches.BatchSynchronizer` scans L1 for `SequenceBatches` events. It
    records as missing the batches whose data is not stored. It then fetches
    that data from the trusted sequencer, or else from randomly chosen
    committee members. It rewinds its start block when it receives a
    `BlockReorg`. Run it in background threads with `start()` and `stop()`,
    or call its steps directly.
  - `committee.CommitteeMap` is a thread-safe map of `DataCommitteeMember`
    values, keyed by address.
  - `startblock.init_start_block` finds the block where the validium
    contract was deployed, by binary search over `code_at`.
  - `txdata.unpack_tx_data` extracts the batch hashes from
    `sequenceBatchesValidium` call data. It handles the Etrog, Elderberry
    and Banana layouts.
  - `reorg.ReorgDetector` polls the chain head. It puts `BlockReorg` values
    on the queue of each subscriber, and `None` on every queue when stopped.
  - `store` defines the `Database` protocol and the `SyncTask` enum, along
    with thin helpers around the database.
- **RPC endpoint handlers** (`dacnode.services`):
  - `datacom.Endpoints` provides `sign_sequence` and `sign_sequence_banana`.
    Only the trusted sequencer may call them.
  - `status.Endpoints` provides `get_status`, which returns a `DACStatus`.
  - `sync.Endpoints` provides `get_offchain_data` and `list_offchain_data`.
    The latter accepts at most 100 hashes.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from dacnode.crypto import generate_private_key, private_key_to_address
from dacnode.sequence import Sequence, SignedSequence

key = generate_private_key()
sequence = Sequence([b"\x00\x01", b"\x02\x03"])
signed = SignedSequence(sequence=sequence, signature=sequence.sign(key))

assert signed.signer() == private_key_to_address(key)
for item in signed.offchain_data():
    print(item.key.hex(), item.value.hex())
```

To print the build information:

```python
import sys
from dacnode.version import print_version

print_version(sys.stdout)
```

## What the package does not do

The package does not include the following:

- **Storage back end.** Supply an object with the methods of
  `dacnode.synchronizer.store.Database`.
- **L1 client.** Supply an object that offers the methods the synchroniser
  and start-block search call: `get_current_data_committee`,
  `header_by_number`, `filter_sequence_batches`, `get_tx` and `code_at`.
- **Sequencer tracker.** Supply an object that offers the methods called on
  it: `get_sequence_batch` and `get_addr`.
- **Client for other committee members.** Supply an object that offers
  `get_offchain_data`.
- **JSON-RPC server.** The endpoint classes are plain handlers, not a
  server.
- **Command-line program or configuration loading.**

Without a supplied fetch function, `ReorgDetector` can poll only an
`http`/`https` JSON-RPC URL.