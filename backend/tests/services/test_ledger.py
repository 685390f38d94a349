"""Ledger — serialized read-modify-write with retry on lost version races."""

import pytest

from marketplace.core.errors import ConcurrencyError, InvalidStarsError
from marketplace.core.ledger_types import LedgerSnapshot, User
from marketplace.services.ledger import Ledger


class RacingStore:
    """Store whose first `conflicts` writes lose the version race."""

    def __init__(self, conflicts: int):
        self.conflicts = conflicts
        self.reads = 0
        self.saved: LedgerSnapshot | None = None

    async def read_snapshot(self) -> LedgerSnapshot:
        self.reads += 1
        return LedgerSnapshot(version=self.reads)

    async def write_snapshot(self, snapshot: LedgerSnapshot) -> int:
        if self.conflicts:
            self.conflicts -= 1
            raise ConcurrencyError("stale")
        self.saved = snapshot
        snapshot.version += 1
        return snapshot.version


async def test_mutate_persists_and_returns_result(ledger):
    result = await ledger.mutate(lambda snap: snap.users.append(User(id="u", name="U")) or "done")
    assert result == "done"
    assert [u.id for u in (await ledger.read()).users] == ["u"]


async def test_domain_error_aborts_without_writing(ledger):
    def boom(snap):
        snap.users.append(User(id="u", name="U"))
        raise InvalidStarsError(0)

    with pytest.raises(InvalidStarsError):
        await ledger.mutate(boom)
    assert (await ledger.read()).version == 0


async def test_should_write_false_skips_the_write(ledger):
    await ledger.mutate(lambda snap: snap.users.append(User(id="u", name="U")))
    await ledger.mutate(
        lambda snap: snap.users.append(User(id="v", name="V")),
        should_write=lambda _: False,
    )
    snapshot = await ledger.read()
    assert snapshot.version == 1
    assert [u.id for u in snapshot.users] == ["u"]


async def test_lost_race_is_retried_against_fresh_snapshot():
    store = RacingStore(conflicts=2)
    ledger = Ledger(store, max_write_retries=3)
    seen_versions = []

    await ledger.mutate(lambda snap: seen_versions.append(snap.version))

    assert seen_versions == [1, 2, 3]
    assert store.saved is not None


async def test_retries_are_bounded():
    store = RacingStore(conflicts=10)
    ledger = Ledger(store, max_write_retries=2)
    with pytest.raises(ConcurrencyError):
        await ledger.mutate(lambda snap: None)
    assert store.reads == 3
