from pathlib import Path

import pytest
from typer.testing import CliRunner

from poe.cli.main import app
from poe.crypto.hashing import state_root
from poe.crypto.keys import AccountKeyPair
from poe.storage import SQLiteStorage

runner = CliRunner()


@pytest.fixture
def temp_db(tmp_path: Path) -> Path:
    return tmp_path / "test-cli.db"


@pytest.fixture
def populated_db(temp_db: Path) -> Path:
    """DB where alice claimed doc1 at height 10."""
    result = runner.invoke(app, ["create", "doc1", "--caller", "alice", "--height", "10", "--db", str(temp_db)])
    assert result.exit_code == 0, result.stdout
    return temp_db


def invoke(db: Path, *args: str):
    return runner.invoke(app, [*args, "--db", str(db)])


def test_show_no_db(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("POE_DB_PATH", str(tmp_path / "missing.db"))
    result = runner.invoke(app, ["show", "doc1"])
    assert result.exit_code == 1
    assert "not found" in result.stdout.lower()
    assert "to get started" in result.stdout.lower()


def test_create_and_show(populated_db: Path):
    result = invoke(populated_db, "show", "doc1")
    assert result.exit_code == 0
    assert "alice" in result.stdout
    assert "10" in result.stdout


def test_create_reports_event(temp_db: Path):
    result = invoke(temp_db, "create", "doc9", "--caller", "alice", "--height", "2")
    assert result.exit_code == 0
    assert "ClaimCreated" in result.stdout
    assert temp_db.exists()


def test_duplicate_create_rejected(populated_db: Path):
    result = invoke(populated_db, "create", "doc1", "--caller", "bob")
    assert result.exit_code == 1
    assert "ProofAlreadyClaimed" in result.stdout

    shown = invoke(populated_db, "show", "doc1")
    assert "alice" in shown.stdout


def test_revoke_by_stranger_then_owner(populated_db: Path):
    result = invoke(populated_db, "revoke", "doc1", "--caller", "bob")
    assert result.exit_code == 1
    assert "NotProofOwner" in result.stdout

    result = invoke(populated_db, "revoke", "doc1", "--caller", "alice")
    assert result.exit_code == 0
    assert "ClaimRevoked" in result.stdout

    shown = invoke(populated_db, "show", "doc1")
    assert shown.exit_code == 1
    assert "unclaimed" in shown.stdout.lower()


def test_revoke_missing(populated_db: Path):
    result = invoke(populated_db, "revoke", "nope", "--caller", "alice")
    assert result.exit_code == 1
    assert "NoSuchProof" in result.stdout


def test_transfer_restamps_height(populated_db: Path):
    result = invoke(populated_db, "transfer", "doc1", "bob", "--caller", "alice", "--height", "12")
    assert result.exit_code == 0
    assert "TransferCreated" in result.stdout

    with SQLiteStorage(populated_db) as storage:
        claim = storage.get(b"doc1")
    assert claim.owner == "bob"
    assert claim.registered_at == 12


def test_height_defaults_to_latest_and_cannot_go_back(populated_db: Path):
    result = invoke(populated_db, "create", "doc2", "--caller", "bob")
    assert result.exit_code == 0
    with SQLiteStorage(populated_db) as storage:
        assert storage.get(b"doc2").registered_at == 10

    result = invoke(populated_db, "create", "doc3", "--caller", "bob", "--height", "3")
    assert result.exit_code == 2
    assert "below the latest" in result.stdout


def test_caller_required(temp_db: Path):
    result = invoke(temp_db, "create", "doc1")
    assert result.exit_code == 2
    assert "caller is required" in result.stdout


def test_key_sets_identity(temp_db: Path):
    keys = AccountKeyPair.generate()
    result = invoke(temp_db, "create", "doc1", "--key", keys.private_key_b64url())
    assert result.exit_code == 0

    with SQLiteStorage(temp_db) as storage:
        assert storage.get(b"doc1").owner == keys.identity


def test_hex_fingerprints(temp_db: Path):
    result = invoke(temp_db, "create", "deadbeef", "--hex", "--caller", "alice")
    assert result.exit_code == 0
    with SQLiteStorage(temp_db) as storage:
        assert storage.contains(b"\xde\xad\xbe\xef")

    bad = invoke(temp_db, "show", "zz", "--hex")
    assert bad.exit_code == 2
    assert "invalid hex" in bad.stdout.lower()


def test_claims_table(populated_db: Path):
    invoke(populated_db, "create", "doc2", "--caller", "bob", "--height", "11")

    result = invoke(populated_db, "claims")
    assert result.exit_code == 0
    assert "doc1" in result.stdout
    assert "doc2" in result.stdout

    only_bob = invoke(populated_db, "claims", "--owner", "bob")
    assert "doc2" in only_bob.stdout
    assert "doc1" not in only_bob.stdout


def test_events_table(populated_db: Path):
    invoke(populated_db, "transfer", "doc1", "bob", "--caller", "alice", "--height", "11")
    invoke(populated_db, "revoke", "doc1", "--caller", "bob", "--height", "12")

    result = invoke(populated_db, "events")
    assert result.exit_code == 0
    for name in ("ClaimCreated", "TransferCreated", "ClaimRevoked"):
        assert name in result.stdout

    recent = invoke(populated_db, "events", "--limit", "1")
    assert "ClaimRevoked" in recent.stdout
    assert "ClaimCreated" not in recent.stdout


def test_root_matches_storage(populated_db: Path):
    result = invoke(populated_db, "root")
    assert result.exit_code == 0
    with SQLiteStorage(populated_db) as storage:
        assert state_root(storage) in result.stdout


def test_keygen():
    result = runner.invoke(app, ["keygen"])
    assert result.exit_code == 0
    assert "identity:" in result.stdout
    assert "private_key:" in result.stdout


def test_events_limit_must_be_positive(populated_db: Path):
    for bad in ("0", "-1"):
        result = invoke(populated_db, "events", "--limit", bad)
        assert result.exit_code == 2


def test_height_outside_range_rejected(temp_db: Path):
    for bad in ("-1", str(2**63)):
        result = invoke(temp_db, "create", "doc1", "--caller", "alice", "--height", bad)
        assert result.exit_code == 2
    assert not temp_db.exists()
