"""Unit tests for the in-memory blob channel used by tests and the CLI demo."""

import asyncio

import pytest

from notesync.backend.core.exceptions import AuthenticationError, ExternalServiceError
from notesync.backend.remote.memory import InMemoryBlobChannel, InMemoryBlobStore


class TestAuthentication:
    @pytest.mark.asyncio
    async def test_silent_requires_known_account(self, blob_store):
        channel = InMemoryBlobChannel(blob_store)

        with pytest.raises(AuthenticationError):
            await channel.authenticate(silent=True, login_hint="alice@example.com")

    @pytest.mark.asyncio
    async def test_interactive_sign_in_registers_account(self, blob_store):
        channel = InMemoryBlobChannel(blob_store)

        await channel.authenticate(credential="alice@example.com")

        assert await channel.current_identity() == "alice@example.com"
        assert "alice@example.com" in blob_store.accounts

    @pytest.mark.asyncio
    async def test_sign_out_hides_identity(self, remote):
        await remote.sign_out()

        assert await remote.is_authenticated() is False
        assert await remote.current_identity() is None


class TestSyncDocument:
    @pytest.mark.asyncio
    async def test_documents_are_per_account(self, blob_store, make_note):
        alice = InMemoryBlobChannel(blob_store, account="alice@example.com")
        bob = InMemoryBlobChannel(blob_store, account="bob@example.com")

        await alice.write_sync_object([make_note("a")])

        assert await bob.locate_sync_object() is None
        ref = await alice.locate_sync_object()
        assert [n.id for n in await alice.read_sync_object(ref)] == ["a"]

    @pytest.mark.asyncio
    async def test_devices_share_a_store(self, make_note):
        shared = InMemoryBlobStore()
        laptop = InMemoryBlobChannel(shared, account="alice@example.com")
        desktop = InMemoryBlobChannel(shared, account="alice@example.com")

        await laptop.write_sync_object([make_note("a")])

        ref = await desktop.locate_sync_object()
        assert ref is not None
        assert shared.notes_for("alice@example.com")[0].id == "a"

    @pytest.mark.asyncio
    async def test_fail_steps(self, remote, make_note):
        remote.fail_steps.add("write")

        with pytest.raises(ExternalServiceError, match="write"):
            await remote.write_sync_object([make_note("a")])
        assert remote.write_count == 0

    @pytest.mark.asyncio
    async def test_read_gate_blocks_until_set(self, remote, make_note):
        await remote.write_sync_object([make_note("a")])
        ref = await remote.locate_sync_object()
        remote.read_gate = asyncio.Event()

        read = asyncio.create_task(remote.read_sync_object(ref))
        await asyncio.sleep(0)
        assert not read.done()

        remote.read_gate.set()
        assert len(await read) == 1
