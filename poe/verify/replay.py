# poe/verify/replay.py
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from poe.chain.calls import execute
from poe.chain.runtime import JournalEntry
from poe.core.errors import RegistryError
from poe.core.types import Event, Height
from poe.crypto.hashing import events_root, state_root
from poe.events import EventLog
from poe.registry.claims import ClaimRegistry
from poe.storage import MemoryStorage, SQLiteStorage


@dataclass
class ReplayFailure:
    index: int
    message: str
    category: str = "general"  # "height", "state_root", "events", "storage"


@dataclass
class ReplayResult:
    is_valid: bool
    message: str = ""
    failures: List[ReplayFailure] = field(default_factory=list)
    state_root: str = ""
    events_root: str = ""

    @property
    def first_failure(self) -> Optional[ReplayFailure]:
        return self.failures[0] if self.failures else None

    def __bool__(self):
        return self.is_valid

    def __str__(self):
        if self.is_valid:
            return "Replay matches ✓"
        lines = [f"Replay FAILED ({len(self.failures)} issues):"]
        for f in self.failures:
            lines.append(f"  • [{f.index}] {f.category}: {f.message}")
        return "\n".join(lines)


class ReplayVerifier:
    """
    Re-executes a journal of authenticated calls on a fresh in-memory
    registry and checks that it lands on the expected state and events.
    Any replica that applied the same journal must match.
    """

    def replay(
        self,
        journal: Iterable[JournalEntry],
        expected_root: Optional[str] = None,
        expected_events: Optional[Sequence[Tuple[Event, Height]]] = None,
    ) -> ReplayResult:
        storage = MemoryStorage()
        log = EventLog()
        registry = ClaimRegistry(storage, log)
        result = ReplayResult(True)

        last_height = None
        for i, entry in enumerate(journal):
            if last_height is not None and entry.height < last_height:
                result.failures.append(ReplayFailure(
                    i, f"Height went backwards: {entry.height} after {last_height}", "height"))
                result.is_valid = False
                break
            last_height = entry.height
            try:
                execute(registry, entry.caller, entry.call, entry.height)
            except RegistryError:
                # Rejections are part of the journal; they change nothing
                pass

        result.state_root = state_root(storage)
        result.events_root = events_root(log.records)

        if not result.is_valid:
            result.message = f"Failed with {len(result.failures)} issues"
            return result

        if expected_root is not None and expected_root != result.state_root:
            result.failures.append(ReplayFailure(
                -1, f"State root mismatch: expected {expected_root}, replayed {result.state_root}", "state_root"))
            result.is_valid = False

        if expected_events is not None:
            replayed = log.records
            expected = list(expected_events)
            for i in range(max(len(expected), len(replayed))):
                if i >= len(expected) or i >= len(replayed):
                    result.failures.append(ReplayFailure(
                        i, f"Event count mismatch: expected {len(expected)}, replayed {len(replayed)}", "events"))
                    result.is_valid = False
                    break
                if expected[i] != replayed[i]:
                    result.failures.append(ReplayFailure(
                        i, f"Event mismatch: expected {expected[i][0].name}, replayed {replayed[i][0].name}", "events"))
                    result.is_valid = False

        result.message = "Replay matches" if result.is_valid else f"Failed with {len(result.failures)} issues"
        return result

    def verify_from_storage(self, journal: Iterable[JournalEntry], storage: SQLiteStorage) -> ReplayResult:
        """Replay `journal` and compare against a persisted registry."""
        try:
            expected_root = state_root(storage)
            expected_events = storage.load_events()
        except Exception as e:
            return ReplayResult(
                False,
                f"Failed to read registry from storage: {str(e)}",
                [ReplayFailure(-1, str(e), "storage")]
            )
        return self.replay(journal, expected_root, expected_events)
