"""
Integration connection lifecycle: catalog merge, transitions and the deferred
sync completion, exercised against the in-memory settings store.
"""

import asyncio

import pytest

from agency_desk.integrations.actions import Configure, Connect, Disconnect, Sync, parse_action
from agency_desk.integrations.catalog import CATALOG, get_catalog, get_integration
from agency_desk.integrations.errors import (
    IntegrationNotConnected,
    IntegrationSyncFailed,
    InvalidIntegration,
    InvalidIntegrationAction,
)
from agency_desk.services.integration_service import IntegrationLifecycleManager
from agency_desk.services.settings_store import InMemorySettingsStore, StorageError

AGENCY = "agency-1"
OTHER_AGENCY = "agency-2"


class TestCatalog:
    def test_catalog_is_stable_and_ordered(self):
        assert get_catalog() is get_catalog()
        assert [entry.id for entry in get_catalog()] == [
            "ivans",
            "healthsherpa",
            "covered-ca",
            "medicare",
            "salesforce",
            "hubspot",
            "twilio",
            "sendgrid",
        ]

    def test_unknown_integration_is_rejected(self):
        with pytest.raises(InvalidIntegration):
            get_integration("myspace")

    def test_parse_action(self):
        assert parse_action("connect", {"a": 1}) == Connect(config={"a": 1})
        assert parse_action("disconnect") == Disconnect()
        assert parse_action("sync") == Sync()
        assert parse_action("configure", {"b": 2}) == Configure(config={"b": 2})
        with pytest.raises(InvalidIntegrationAction):
            parse_action("explode")


class TestListing:
    async def test_untouched_agency_sees_every_integration_disconnected(self, manager):
        integrations = await manager.list(AGENCY)

        assert [item.id for item in integrations] == [entry.id for entry in CATALOG]
        for item in integrations:
            assert item.connected is False
            assert item.status == "inactive"
            assert item.last_sync is None
            assert item.config is None

    async def test_stored_state_is_overlaid_in_catalog_order(self, manager):
        await manager.apply(AGENCY, "sendgrid", Connect())
        await manager.apply(AGENCY, "ivans", Connect())

        integrations = await manager.list(AGENCY)

        assert len(integrations) == len(CATALOG)
        connected = [item.id for item in integrations if item.connected]
        assert connected == ["ivans", "sendgrid"]


class TestConnect:
    async def test_connect_activates_and_stamps_last_sync(self, manager, clock):
        before = clock.current
        result = await manager.apply(AGENCY, "ivans", Connect())

        assert result.id == "ivans"
        assert result.connected is True
        assert result.status == "active"
        assert result.last_sync is not None and result.last_sync >= before

    async def test_connect_is_idempotent_and_refreshes_last_sync(self, manager):
        first = await manager.apply(AGENCY, "ivans", Connect(config={"agent_code": "A1"}))
        second = await manager.apply(AGENCY, "ivans", Connect())

        assert second.status == "active"
        assert second.last_sync > first.last_sync
        assert second.config == {"agent_code": "A1"}

    async def test_connect_with_config_replaces_stored_config(self, manager):
        await manager.apply(AGENCY, "twilio", Connect(config={"sid": "old"}))
        result = await manager.apply(AGENCY, "twilio", Connect(config={"sid": "new"}))

        assert result.config == {"sid": "new"}

    async def test_unknown_integration_writes_nothing(self, manager, settings_store):
        with pytest.raises(InvalidIntegration):
            await manager.apply(AGENCY, "unknown", Connect())

        assert settings_store.document(AGENCY) == {}


class TestDisconnect:
    async def test_disconnect_after_connect_clears_config(self, manager):
        await manager.apply(AGENCY, "hubspot", Connect(config={"portal": 42}))
        result = await manager.apply(AGENCY, "hubspot", Disconnect())

        assert result.connected is False
        assert result.status == "inactive"
        assert result.config is None

    async def test_disconnect_is_idempotent(self, manager, settings_store):
        await manager.apply(AGENCY, "hubspot", Connect())
        await manager.apply(AGENCY, "hubspot", Disconnect())
        once = settings_store.document(AGENCY)
        await manager.apply(AGENCY, "hubspot", Disconnect())

        assert settings_store.document(AGENCY) == once

    async def test_disconnect_never_connected_integration_succeeds(self, manager):
        result = await manager.apply(AGENCY, "medicare", Disconnect())

        assert result.connected is False
        assert result.status == "inactive"


class TestConfigure:
    async def test_configure_does_not_change_connection(self, manager):
        result = await manager.apply(AGENCY, "salesforce", Configure(config={"instance": "na1"}))

        assert result.connected is False
        assert result.status == "inactive"
        assert result.config == {"instance": "na1"}

    async def test_configure_before_connect_is_preserved(self, manager):
        await manager.apply(AGENCY, "salesforce", Configure(config={"foo": 1}))
        result = await manager.apply(AGENCY, "salesforce", Connect())

        assert result.connected is True
        assert result.config == {"foo": 1}

    async def test_configure_keeps_active_status(self, manager):
        await manager.apply(AGENCY, "salesforce", Connect())
        result = await manager.apply(AGENCY, "salesforce", Configure(config={"instance": "eu2"}))

        assert result.connected is True
        assert result.status == "active"


class TestSync:
    async def test_sync_requires_connection(self, manager, settings_store, scheduler):
        with pytest.raises(IntegrationNotConnected):
            await manager.apply(AGENCY, "ivans", Sync())

        assert settings_store.document(AGENCY) == {}
        assert scheduler.scheduled == []

    async def test_sync_marks_syncing_then_completes(self, manager, scheduler, connector):
        connected = await manager.apply(AGENCY, "ivans", Connect(config={"code": "X"}))
        syncing = await manager.apply(AGENCY, "ivans", Sync())

        assert syncing.status == "syncing"
        assert syncing.connected is True
        assert len(scheduler.scheduled) == 1
        completion, delay, _ = scheduler.scheduled[0]
        assert (completion.agency_id, completion.integration_id) == (AGENCY, "ivans")
        assert delay == 3.0

        await scheduler.run_all()

        [ivans] = [item for item in await manager.list(AGENCY) if item.id == "ivans"]
        assert ivans.status == "active"
        assert ivans.connected is True
        assert ivans.last_sync > connected.last_sync
        assert connector.calls == [(AGENCY, "ivans", {"code": "X"})]

    async def test_sync_while_syncing_does_not_reschedule(self, manager, scheduler):
        await manager.apply(AGENCY, "ivans", Connect())
        await manager.apply(AGENCY, "ivans", Sync())
        again = await manager.apply(AGENCY, "ivans", Sync())

        assert again.status == "syncing"
        assert len(scheduler.scheduled) == 1

    async def test_disconnect_before_completion_wins(self, manager, scheduler, connector):
        await manager.apply(AGENCY, "ivans", Connect())
        await manager.apply(AGENCY, "ivans", Sync())
        await manager.apply(AGENCY, "ivans", Disconnect())

        await scheduler.run_all()

        [ivans] = [item for item in await manager.list(AGENCY) if item.id == "ivans"]
        assert ivans.connected is False
        assert ivans.status == "inactive"
        assert connector.calls == []

    async def test_completion_merges_into_latest_document(self, manager, scheduler):
        await manager.apply(AGENCY, "ivans", Connect())
        await manager.apply(AGENCY, "ivans", Sync())
        # Edited after the sync started; the completion must not clobber it.
        await manager.apply(AGENCY, "twilio", Connect(config={"sid": "AC1"}))
        await manager.apply(AGENCY, "ivans", Configure(config={"code": "late"}))

        await scheduler.run_all()

        states = {item.id: item for item in await manager.list(AGENCY)}
        assert states["ivans"].status == "active"
        assert states["ivans"].config == {"code": "late"}
        assert states["twilio"].connected is True
        assert states["twilio"].config == {"sid": "AC1"}

    async def test_connector_failure_moves_to_error(self, manager, scheduler, connector):
        connector.error = IntegrationSyncFailed("carrier feed unavailable")
        await manager.apply(AGENCY, "ivans", Connect(config={"code": "X"}))
        await manager.apply(AGENCY, "ivans", Sync())

        await scheduler.run_all()

        [ivans] = [item for item in await manager.list(AGENCY) if item.id == "ivans"]
        assert ivans.connected is False
        assert ivans.status == "error"
        assert ivans.last_error == "carrier feed unavailable"
        assert ivans.config == {"code": "X"}

    async def test_connector_timeout_moves_to_error(self, settings_store, scheduler, clock):
        class SlowConnector:
            async def sync(self, agency_id, integration, config):
                await asyncio.sleep(5)

        manager = IntegrationLifecycleManager(
            settings_store, scheduler, SlowConnector(), clock=clock, sync_timeout_seconds=0.01
        )
        await manager.apply(AGENCY, "hubspot", Connect())
        await manager.apply(AGENCY, "hubspot", Sync())

        await scheduler.run_all()

        [hubspot] = [item for item in await manager.list(AGENCY) if item.id == "hubspot"]
        assert hubspot.status == "error"
        assert "timed out" in hubspot.last_error

    async def test_reconnect_after_error_clears_error(self, manager, scheduler, connector):
        connector.error = IntegrationSyncFailed("boom")
        await manager.apply(AGENCY, "ivans", Connect(config={"code": "X"}))
        await manager.apply(AGENCY, "ivans", Sync())
        await scheduler.run_all()

        result = await manager.apply(AGENCY, "ivans", Connect())

        assert result.status == "active"
        assert result.last_error is None
        assert result.config == {"code": "X"}

    async def test_sync_after_error_is_rejected(self, manager, scheduler, connector):
        connector.error = IntegrationSyncFailed("boom")
        await manager.apply(AGENCY, "ivans", Connect())
        await manager.apply(AGENCY, "ivans", Sync())
        await scheduler.run_all()

        with pytest.raises(IntegrationNotConnected):
            await manager.apply(AGENCY, "ivans", Sync())

    async def test_failed_completion_write_leaves_syncing(self, manager, scheduler, settings_store):
        await manager.apply(AGENCY, "ivans", Connect())
        await manager.apply(AGENCY, "ivans", Sync())
        settings_store.fail_writes = True

        await scheduler.run_all()

        settings_store.fail_writes = False
        [ivans] = [item for item in await manager.list(AGENCY) if item.id == "ivans"]
        assert ivans.status == "syncing"

    async def test_failed_completion_read_leaves_syncing(self, manager, scheduler, settings_store):
        await manager.apply(AGENCY, "ivans", Connect())
        await manager.apply(AGENCY, "ivans", Sync())
        settings_store.fail_reads = True

        await scheduler.run_all()

        settings_store.fail_reads = False
        [ivans] = [item for item in await manager.list(AGENCY) if item.id == "ivans"]
        assert ivans.status == "syncing"


class TestIsolationAndStorage:
    async def test_agencies_do_not_see_each_other(self, manager):
        await manager.apply(AGENCY, "ivans", Connect(config={"secret": "mine"}))

        others = await manager.list(OTHER_AGENCY)

        assert all(not item.connected for item in others)
        assert all(item.config is None for item in others)

    async def test_storage_error_propagates(self, manager, settings_store):
        settings_store.fail_writes = True

        with pytest.raises(StorageError):
            await manager.apply(AGENCY, "ivans", Connect())

    async def test_unrelated_settings_keys_survive(self, scheduler, clock):
        settings_store = InMemorySettingsStore(
            {AGENCY: {"theme": "dark", "integrations": {"legacy": {"connected": True}}}}
        )
        manager = IntegrationLifecycleManager(settings_store, scheduler, clock=clock)

        await manager.apply(AGENCY, "ivans", Connect())

        document = settings_store.document(AGENCY)
        assert document["theme"] == "dark"
        assert document["integrations"]["legacy"] == {"connected": True}
        assert document["integrations"]["ivans"]["status"] == "active"
        assert "lastSync" in document["integrations"]["ivans"]

    async def test_connected_implies_active_or_syncing(self, manager, scheduler, connector):
        connector.error = IntegrationSyncFailed("nope")
        await manager.apply(AGENCY, "ivans", Connect())
        await manager.apply(AGENCY, "ivans", Sync())
        await manager.apply(AGENCY, "twilio", Connect())
        await manager.apply(AGENCY, "hubspot", Configure(config={"k": "v"}))
        await scheduler.run_all()

        for item in await manager.list(AGENCY):
            if item.connected:
                assert item.status in {"active", "syncing"}
