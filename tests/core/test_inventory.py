"""Tests for the container inventory."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from container_helper.core.inventory import (
    ContainerInventoryService,
    exec_command,
    filter_containers,
    format_created,
    format_ports,
    search_containers,
    ssh_command,
    truncate_id,
)
from container_helper.models.container import ContainerRecord
from container_helper.services.exceptions import (
    ContainerNotFoundError,
    TransportError,
    TRANSPORT_ERROR_MESSAGE,
)


class TestFiltering:
    """Test cases for state filters and search."""

    def test_filter_all(self, container_records):
        assert filter_containers(container_records, "all") == container_records

    def test_running_and_stopped_partition(self, container_records):
        """Test running and stopped are disjoint and cover everything."""
        running = filter_containers(container_records, "running")
        stopped = filter_containers(container_records, "stopped")

        assert [r.name for r in running] == ["web-dev"]
        assert [r.name for r in stopped] == ["Python-Sandbox", "cache"]
        assert len(running) + len(stopped) == len(container_records)

    def test_unknown_filter(self, container_records):
        with pytest.raises(ValueError, match="Unknown state filter 'paused'"):
            filter_containers(container_records, "paused")

    @pytest.mark.parametrize("query,expected", [
        ("python", ["Python-Sandbox"]),
        ("PYTHON", ["Python-Sandbox"]),
        ("alpine", ["cache"]),
        ("dddd3333", ["Python-Sandbox"]),
        ("", ["web-dev", "Python-Sandbox", "cache"]),
        ("nothing", []),
    ])
    def test_search(self, container_records, query, expected):
        assert [r.name for r in search_containers(container_records, query)] == expected


class TestFormatting:
    """Test cases for display helpers."""

    def test_truncate_id(self):
        assert truncate_id("aaaa1111bbbb2222cccc") == "aaaa1111bbbb"
        assert truncate_id("short") == "short"

    def test_format_ports(self, container_records):
        web, sandbox, cache = container_records
        assert format_ports(web) == "2222:22/tcp"
        assert format_ports(sandbox) == "-"
        assert format_ports(cache) == "6379/tcp"

    def test_format_created(self):
        assert format_created(1700000000) == "2023-11-14 22:13:20"
        assert format_created(0) == "-"

    def test_exec_command(self, container_records):
        web, _, cache = container_records
        assert exec_command(web) == "docker exec -it aaaa1111bbbb /bin/bash"
        assert exec_command(cache) == "docker exec -it 999988887777 /bin/sh"

    def test_ssh_command(self, container_records):
        web, sandbox, _ = container_records
        assert ssh_command(web) == "ssh -p 2222 root@localhost"
        assert ssh_command(sandbox) is None


class TestContainerInventoryService:
    """Test cases for ContainerInventoryService."""

    @pytest.mark.asyncio
    async def test_refresh_replaces_snapshot(self, mock_engine, container_records):
        mock_engine.list_containers.return_value = container_records
        inventory = ContainerInventoryService(mock_engine)

        snapshot = await inventory.refresh()

        assert snapshot == tuple(container_records)
        assert inventory.snapshot == tuple(container_records)
        assert inventory.last_error is None

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_snapshot(self, mock_engine, container_records):
        """Test a failed poll leaves the previous snapshot intact."""
        mock_engine.list_containers.side_effect = [container_records, TransportError("down")]
        inventory = ContainerInventoryService(mock_engine)
        await inventory.refresh()

        with pytest.raises(TransportError):
            await inventory.refresh()

        assert inventory.snapshot == tuple(container_records)
        assert inventory.last_error == TRANSPORT_ERROR_MESSAGE

    @pytest.mark.asyncio
    async def test_older_refresh_never_overwrites_newer(self, mock_engine, container_records):
        release_first = asyncio.Event()
        calls = []

        async def list_containers():
            calls.append(1)
            if len(calls) == 1:
                await release_first.wait()
                return container_records
            return container_records[:1]

        mock_engine.list_containers = AsyncMock(side_effect=list_containers)
        inventory = ContainerInventoryService(mock_engine)

        first = asyncio.create_task(inventory.refresh())
        await asyncio.sleep(0)
        await inventory.refresh()
        release_first.set()
        await first

        assert [r.name for r in inventory.snapshot] == ["web-dev"]

    @pytest.mark.asyncio
    async def test_tick_skipped_while_poll_in_flight(self, mock_engine, container_records):
        """Test scheduled ticks never stack on a slow engine."""
        release = asyncio.Event()

        async def slow_list():
            await release.wait()
            return container_records

        mock_engine.list_containers = AsyncMock(side_effect=slow_list)
        inventory = ContainerInventoryService(mock_engine)

        first = asyncio.create_task(inventory._tick())
        await asyncio.sleep(0)
        await inventory._tick()
        await inventory._tick()
        release.set()
        await first

        assert mock_engine.list_containers.await_count == 1
        assert inventory.snapshot == tuple(container_records)

    @pytest.mark.asyncio
    async def test_tick_logs_failures(self, mock_engine, caplog):
        mock_engine.list_containers.side_effect = TransportError("down")
        inventory = ContainerInventoryService(mock_engine)

        await inventory._tick()

        assert "Failed to fetch containers" in caplog.text
        assert inventory.snapshot == ()

    @pytest.mark.asyncio
    async def test_polling_start_and_close(self, mock_engine, container_records):
        mock_engine.list_containers.return_value = container_records
        inventory = ContainerInventoryService(mock_engine, interval=0.01)

        inventory.start_polling()
        assert inventory.polling
        await asyncio.sleep(0.05)
        await inventory.close()

        assert not inventory.polling
        assert inventory.snapshot == tuple(container_records)
        assert mock_engine.list_containers.await_count >= 2

    @pytest.mark.asyncio
    async def test_visible_filters_then_searches(self, mock_engine, container_records):
        mock_engine.list_containers.return_value = container_records
        inventory = ContainerInventoryService(mock_engine)
        await inventory.refresh()

        assert [r.name for r in inventory.visible("stopped", "c")] == ["cache"]
        assert [r.name for r in inventory.filter("running")] == ["web-dev"]
        assert [r.name for r in inventory.search("redis")] == ["cache"]

    @pytest.mark.asyncio
    async def test_find(self, mock_engine, container_records):
        mock_engine.list_containers.return_value = container_records
        inventory = ContainerInventoryService(mock_engine)
        await inventory.refresh()

        assert inventory.find("aaaa1111").name == "web-dev"
        assert inventory.find("cache").id == "9999888877776666"
        assert inventory.find("zzzz") is None

    @pytest.mark.asyncio
    async def test_inspect(self, mock_engine):
        record = ContainerRecord(id="abc", name="x", image="y", state="running", env=["A=1"])
        mock_engine.get_container.return_value = record
        inventory = ContainerInventoryService(mock_engine)

        assert await inventory.inspect("abc") is record
        mock_engine.get_container.assert_awaited_once_with("abc")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action,engine_method", [
        ("start", "start_container"),
        ("stop", "stop_container"),
        ("remove", "remove_container"),
    ])
    async def test_actions_refresh_snapshot(self, mock_engine, container_records, action, engine_method):
        """Test each action triggers an immediate refresh."""
        mock_engine.list_containers.return_value = container_records
        inventory = ContainerInventoryService(mock_engine)

        await getattr(inventory, action)("aaaa1111")

        getattr(mock_engine, engine_method).assert_awaited_once_with("aaaa1111")
        mock_engine.list_containers.assert_awaited_once()
        assert inventory.snapshot == tuple(container_records)

    @pytest.mark.asyncio
    async def test_action_failure_propagates_without_refresh(self, mock_engine):
        mock_engine.stop_container.side_effect = ContainerNotFoundError("Container 'x' not found")
        inventory = ContainerInventoryService(mock_engine)

        with pytest.raises(ContainerNotFoundError):
            await inventory.stop("x")
        mock_engine.list_containers.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_refresh_failure_after_action_is_logged(self, mock_engine, caplog):
        mock_engine.list_containers.side_effect = TransportError("down")
        inventory = ContainerInventoryService(mock_engine)

        await inventory.start("abc")

        assert "Failed to refresh containers" in caplog.text

    @pytest.mark.asyncio
    async def test_tick_skipped_while_older_poll_outlives_refresh(self, mock_engine, container_records):
        """Test a finished out-of-cycle refresh does not let a tick overlap an older poll."""
        release_first = asyncio.Event()
        calls = []

        async def list_containers():
            calls.append(1)
            if len(calls) == 1:
                await release_first.wait()
            return container_records

        mock_engine.list_containers = AsyncMock(side_effect=list_containers)
        inventory = ContainerInventoryService(mock_engine)

        first = asyncio.create_task(inventory._tick())
        await asyncio.sleep(0)
        await inventory.refresh()
        await inventory._tick()

        assert mock_engine.list_containers.await_count == 2

        release_first.set()
        await first
        await inventory._tick()
        assert mock_engine.list_containers.await_count == 3
