# examples/registry_demo.py
# Run with: python examples/registry_demo.py
#
# Walks two accounts through create / transfer / revoke on an in-memory
# runtime, then replays the journal to show that a second replica agrees.

from poe import Call, Runtime
from poe.core.encoding import fingerprint_hex
from poe.crypto import AccountKeyPair, state_root, events_root
from poe.verify import ReplayVerifier


def show(runtime: Runtime, label: str, fingerprint: bytes):
    claim = runtime.proofs(fingerprint)
    owner = "—" if claim is None else f"{claim.owner[:10]}… since block {claim.registered_at}"
    print(f"  {label:<28} {fingerprint_hex(fingerprint)[:16]}  {owner}")


if __name__ == "__main__":
    alice = AccountKeyPair.generate()
    bob = AccountKeyPair.generate()
    runtime = Runtime(height=1)

    doc = b"sha256:5891b5b522d5df086d0ff0b110fbd9d21bb4fc7163af34d08286a2e846f6be03"

    print("== create")
    result = runtime.dispatch(runtime.sign(alice, Call.create_claim(doc)))
    print(f"  {result.event.name}")
    show(runtime, "after create", doc)

    print("== duplicate create by bob")
    result = runtime.dispatch(runtime.sign(bob, Call.create_claim(doc)))
    print(f"  rejected: {result.error.code}")

    runtime.advance_block(4)
    print("== transfer alice -> bob")
    runtime.dispatch(runtime.sign(alice, Call.transfer_claim(bob.identity, doc)))
    show(runtime, "after transfer", doc)

    print("== alice tries to revoke")
    result = runtime.dispatch(runtime.sign(alice, Call.revoke_claim(doc)))
    print(f"  rejected: {result.error.code}")

    print("== bob revokes")
    runtime.dispatch(runtime.sign(bob, Call.revoke_claim(doc)))
    show(runtime, "after revoke", doc)

    print("== replay on a second replica")
    replay = ReplayVerifier().replay(
        runtime.journal,
        expected_root=state_root(runtime.storage),
        expected_events=runtime.sink.records,
    )
    print(f"  {replay}")
    print(f"  events_root {events_root(runtime.sink.records)[:16]}…")
