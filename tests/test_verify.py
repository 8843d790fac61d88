import pytest
from dataclasses import replace
from pathlib import Path

from poe.chain import Call, Runtime
from poe.chain.runtime import JournalEntry
from poe.core.types import Claim, ClaimCreated
from poe.crypto.hashing import events_root, state_root
from poe.crypto.keys import AccountKeyPair
from poe.storage import MemoryStorage
from poe.verify import ReplayVerifier


def run_test_chain(runtime: Runtime):
    alice, bob = AccountKeyPair.generate(), AccountKeyPair.generate()
    steps = [
        (alice, Call.create_claim(b"doc1")),
        (bob, Call.create_claim(b"doc1")),              # rejected, stays in journal
        (alice, Call.create_claim(b"doc2")),
        (alice, Call.transfer_claim(bob.identity, b"doc2")),
        (bob, Call.revoke_claim(b"doc1")),              # rejected
        (alice, Call.revoke_claim(b"doc1")),
    ]
    for signer, call in steps:
        runtime.dispatch(runtime.sign(signer, call))
        runtime.advance_block()
    return alice, bob


@pytest.fixture
def runtime() -> Runtime:
    rt = Runtime(height=1)
    run_test_chain(rt)
    return rt


def test_replay_matches(runtime: Runtime):
    result = ReplayVerifier().replay(
        runtime.journal,
        expected_root=state_root(runtime.storage),
        expected_events=runtime.sink.records,
    )
    assert result.is_valid, str(result)
    assert result.failures == []
    assert result.state_root == state_root(runtime.storage)
    assert result.events_root == events_root(runtime.sink.records)
    assert "matches" in str(result)


def test_empty_journal():
    result = ReplayVerifier().replay([], expected_root=state_root(Runtime().storage), expected_events=[])
    assert result
    assert result.events_root == ""


def test_dropped_call_changes_root(runtime: Runtime):
    journal = runtime.journal[:-1]   # lose the final revoke
    result = ReplayVerifier().replay(
        journal,
        expected_root=state_root(runtime.storage),
        expected_events=runtime.sink.records,
    )
    assert not result
    categories = {f.category for f in result.failures}
    assert categories == {"state_root", "events"}


def test_shifted_height_detected(runtime: Runtime):
    journal = list(runtime.journal)
    # replay the transfer one block later than it really happened
    journal[3] = replace(journal[3], height=journal[3].height + 1)
    result = ReplayVerifier().replay(
        journal,
        expected_root=state_root(runtime.storage),
        expected_events=runtime.sink.records,
    )
    assert not result.is_valid
    assert result.first_failure.category == "state_root"


def test_height_going_backwards():
    journal = [
        JournalEntry(5, "alice", Call.create_claim(b"a")),
        JournalEntry(4, "alice", Call.create_claim(b"b")),
    ]
    result = ReplayVerifier().replay(journal)
    assert not result
    assert result.first_failure.index == 1
    assert result.first_failure.category == "height"


def test_replay_without_expectations():
    journal = [JournalEntry(1, "alice", Call.create_claim(b"a"))]
    result = ReplayVerifier().replay(journal)
    assert result.is_valid
    assert result.events_root == events_root([(ClaimCreated("alice", b"a"), 1)])


def test_verify_from_storage(tmp_path: Path):
    rt = Runtime(storage=str(tmp_path / "replica.db"), height=1)
    run_test_chain(rt)

    result = ReplayVerifier().verify_from_storage(rt.journal, rt.storage)
    assert result.is_valid, str(result)
    rt.close()


def test_verify_from_closed_storage(tmp_path: Path):
    rt = Runtime(storage=str(tmp_path / "replica.db"))
    rt.close()
    result = ReplayVerifier().verify_from_storage([], rt.storage)
    assert not result
    assert result.first_failure.category == "storage"


def test_roots_distinguish_heights_above_2_53():
    low, high = MemoryStorage(), MemoryStorage()
    low.insert(b"doc", Claim("alice", 2**53))
    high.insert(b"doc", Claim("alice", 2**53 + 1))
    assert state_root(low) != state_root(high)

    event = ClaimCreated("alice", b"doc")
    assert events_root([(event, 2**53)]) != events_root([(event, 2**53 + 1)])
