"""
Integration Tests for Multi-Device Sync.

Two or more devices sync through one shared remote. After every device has
run a cycle with nothing changing in between, all of them hold the same
notes.
"""

import pytest

from notesync.backend.sync.orchestrator import SyncOutcome

ALICE = "alice@example.com"
BOB = "bob@example.com"


def _by_id(notes):
    return sorted(notes, key=lambda note: note.id)


class TestConvergence:
    """Edits made on one device reach the others."""

    @pytest.mark.asyncio
    async def test_first_device_uploads_second_downloads(self, make_device, make_note, shared_remote):
        laptop = make_device("laptop")
        desktop = make_device("desktop")
        await laptop.store.put_all([make_note("a")])

        assert (await laptop.sync()).outcome is SyncOutcome.FIRST_SYNC
        assert (await desktop.sync()).outcome is SyncOutcome.MERGED

        assert await desktop.live_notes() == {"a": "# Note a"}
        assert [n.id for n in shared_remote.notes_for(ALICE)] == ["a"]

    @pytest.mark.asyncio
    async def test_latest_edit_wins_everywhere(self, make_device, make_note):
        laptop = make_device("laptop")
        desktop = make_device("desktop")
        await laptop.store.put_all([make_note("a", minutes=1, content="laptop draft")])
        await laptop.sync()
        await desktop.sync()

        await desktop.store.put_all([make_note("a", minutes=5, content="desktop final")])
        await laptop.store.put_all([make_note("a", minutes=3, content="laptop second")])
        await laptop.sync()
        await desktop.sync()
        await laptop.sync()

        assert await laptop.live_notes() == {"a": "desktop final"}
        assert await desktop.live_notes() == {"a": "desktop final"}

    @pytest.mark.asyncio
    async def test_independent_notes_are_combined(self, make_device, make_note):
        laptop = make_device("laptop")
        desktop = make_device("desktop")
        await laptop.store.put_all([make_note("a")])
        await desktop.store.put_all([make_note("b")])

        for device in (laptop, desktop, laptop):
            await device.sync()

        assert set(await laptop.live_notes()) == {"a", "b"}
        assert _by_id(await laptop.store.load_all()) == _by_id(await desktop.store.load_all())

    @pytest.mark.asyncio
    async def test_deletion_propagates_as_tombstone(self, make_device, make_note):
        laptop = make_device("laptop")
        desktop = make_device("desktop")
        await laptop.store.put_all([make_note("a"), make_note("b")])
        await laptop.sync()
        await desktop.sync()

        assert await desktop.notes.delete_note("a") is True
        await desktop.sync()
        await laptop.sync()

        assert set(await laptop.live_notes()) == {"b"}
        tombstone = next(n for n in await laptop.store.load_all() if n.id == "a")
        assert tombstone.deleted is True

    @pytest.mark.asyncio
    async def test_stale_copy_does_not_resurrect_deleted_note(self, make_device, make_note):
        laptop = make_device("laptop")
        desktop = make_device("desktop")
        await laptop.store.put_all([make_note("a")])
        await laptop.sync()
        await desktop.sync()

        await laptop.notes.delete_note("a")
        await laptop.sync()
        await desktop.sync()

        assert await desktop.live_notes() == {}

    @pytest.mark.asyncio
    async def test_three_devices_converge(self, make_device, make_note):
        devices = [make_device(name) for name in ("laptop", "desktop", "tablet")]
        for index, device in enumerate(devices):
            await device.store.put_all([make_note(f"n{index}", minutes=index)])

        for _ in range(2):
            for device in devices:
                await device.sync()

        collections = [_by_id(await device.store.load_all()) for device in devices]
        assert collections[0] == collections[1] == collections[2]
        assert len(collections[0]) == 3


class TestAccounts:
    """Each account has its own remote document."""

    @pytest.mark.asyncio
    async def test_accounts_do_not_mix(self, make_device, make_note, shared_remote):
        alice = make_device("alice-laptop", account=ALICE)
        bob = make_device("bob-laptop", account=BOB)
        await alice.store.put_all([make_note("a")])
        await bob.store.put_all([make_note("b")])

        await alice.sync()
        await bob.sync()

        assert [n.id for n in shared_remote.notes_for(ALICE)] == ["a"]
        assert [n.id for n in shared_remote.notes_for(BOB)] == ["b"]

    @pytest.mark.asyncio
    async def test_switch_loads_other_account(self, make_device, make_note):
        bob = make_device("bob-laptop", account=BOB)
        await bob.store.put_all([make_note("b")])
        await bob.sync()

        device = make_device("shared-laptop", account=ALICE, switch_on_change=True)
        await device.store.put_all([make_note("a")])
        await device.sync()

        device.channel.switch_account(BOB)
        report = await device.sync()

        assert report.account_switched is True
        assert await device.live_notes() == {"b": "# Note b"}
        assert await device.session.last_synced_identity() == BOB

    @pytest.mark.asyncio
    async def test_merge_on_switch_uploads_local_notes(self, make_device, make_note, shared_remote):
        bob = make_device("bob-laptop", account=BOB)
        await bob.store.put_all([make_note("b")])
        await bob.sync()

        device = make_device("shared-laptop", account=ALICE, switch_on_change=False)
        await device.store.put_all([make_note("a")])
        await device.sync()

        device.channel.switch_account(BOB)
        report = await device.sync()

        assert report.account_switched is False
        assert {n.id for n in shared_remote.notes_for(BOB)} == {"a", "b"}
        assert {n.id for n in shared_remote.notes_for(ALICE)} == {"a"}
