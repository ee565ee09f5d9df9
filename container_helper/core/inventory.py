"""Container inventory kept in sync with the engine by polling."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Sequence, Tuple

from ..models.container import ContainerRecord
from ..services.exceptions import ServiceError, describe_error
from .constants import CONTAINER_ID_PREFIX_LENGTH, POLL_INTERVAL, SSH_CONTAINER_PORT

logger = logging.getLogger(__name__)

STATE_FILTERS = ("all", "running", "stopped")


def filter_containers(records: Sequence[ContainerRecord], state: str = "all") -> list[ContainerRecord]:
    """Filter records by state; ``stopped`` means anything not running."""
    if state not in STATE_FILTERS:
        raise ValueError(f"Unknown state filter '{state}'")
    if state == "running":
        return [r for r in records if r.is_running]
    if state == "stopped":
        return [r for r in records if not r.is_running]
    return list(records)


def search_containers(records: Sequence[ContainerRecord], query: str) -> list[ContainerRecord]:
    """Case-insensitive substring match over name, image and id."""
    if not query:
        return list(records)
    query = query.lower()
    return [
        r for r in records
        if query in r.name.lower() or query in r.image.lower() or query in r.id.lower()
    ]


def truncate_id(container_id: str) -> str:
    return container_id[:CONTAINER_ID_PREFIX_LENGTH]


def format_ports(record: ContainerRecord) -> str:
    if not record.ports:
        return "-"
    return ", ".join(
        f"{p.public_port}:{p.private_port}/{p.protocol}" if p.public_port
        else f"{p.private_port}/{p.protocol}"
        for p in record.ports
    )


def format_created(timestamp: int) -> str:
    if not timestamp:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def exec_command(record: ContainerRecord) -> str:
    """Shell command that opens an interactive shell in the container."""
    # Alpine images have no bash
    shell = "/bin/sh" if "alpine" in record.image.lower() else "/bin/bash"
    return f"docker exec -it {truncate_id(record.id)} {shell}"


def ssh_command(record: ContainerRecord) -> Optional[str]:
    """SSH command for a container publishing the SSH daemon, None otherwise."""
    for port in record.ports:
        if port.private_port == SSH_CONTAINER_PORT and port.public_port:
            return f"ssh -p {port.public_port} root@localhost"
    return None


class ContainerInventoryService:
    """Polls the engine for containers and exposes a read-only snapshot.

    The snapshot is replaced as a whole on each successful poll. Scheduled
    ticks are skipped while a poll is in flight; out-of-cycle refreshes carry
    a token so an older refresh never overwrites a newer one.
    """

    def __init__(self, engine, interval: float = POLL_INTERVAL):
        self.engine = engine
        self.interval = interval
        self.snapshot: Tuple[ContainerRecord, ...] = ()
        self.last_error: Optional[str] = None
        self._polls_in_flight = 0
        self._token = 0
        self._loop_task: Optional[asyncio.Task] = None
        self._tick_tasks: set = set()

    async def refresh(self) -> Tuple[ContainerRecord, ...]:
        """Fetch the container list now.

        Raises:
            ServiceError: If the engine call fails; the snapshot is unchanged
        """
        self._token += 1
        token = self._token
        self._polls_in_flight += 1
        try:
            records = await self.engine.list_containers()
        except ServiceError as e:
            if token == self._token:
                self.last_error = describe_error(e)
            raise
        finally:
            self._polls_in_flight -= 1

        if token != self._token:
            logger.debug(f"Discarding stale container list (token {token})")
            return self.snapshot
        self.snapshot = tuple(records)
        self.last_error = None
        return self.snapshot

    async def _tick(self) -> None:
        if self._polls_in_flight:
            logger.debug("Poll in flight, skipping tick")
            return
        try:
            await self.refresh()
        except ServiceError as e:
            logger.warning(f"Failed to fetch containers: {e}")

    def _schedule_tick(self) -> None:
        task = asyncio.create_task(self._tick())
        self._tick_tasks.add(task)
        task.add_done_callback(self._tick_tasks.discard)

    async def _poll_loop(self) -> None:
        self._schedule_tick()
        while True:
            await asyncio.sleep(self.interval)
            self._schedule_tick()

    def start_polling(self) -> None:
        """Start polling. Requires a running event loop."""
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._poll_loop())

    async def close(self) -> None:
        """Stop polling and wait for outstanding ticks to finish cancelling."""
        tasks = list(self._tick_tasks)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def polling(self) -> bool:
        return self._loop_task is not None

    def filter(self, state: str = "all") -> list[ContainerRecord]:
        return filter_containers(self.snapshot, state)

    def search(self, query: str) -> list[ContainerRecord]:
        return search_containers(self.snapshot, query)

    def visible(self, state: str = "all", query: str = "") -> list[ContainerRecord]:
        """Filter by state, then search."""
        return search_containers(filter_containers(self.snapshot, state), query)

    def find(self, container_id: str) -> Optional[ContainerRecord]:
        """Find a snapshot record by full or prefix ID, or by name."""
        for record in self.snapshot:
            if record.id.startswith(container_id) or record.name == container_id:
                return record
        return None

    async def inspect(self, container_id: str) -> ContainerRecord:
        """Fetch full details (environment, mounts) for one container."""
        return await self.engine.get_container(container_id)

    async def start(self, container_id: str) -> None:
        await self.engine.start_container(container_id)
        logger.info(f"Started container {container_id}")
        await self._refresh_after_action()

    async def stop(self, container_id: str) -> None:
        await self.engine.stop_container(container_id)
        logger.info(f"Stopped container {container_id}")
        await self._refresh_after_action()

    async def remove(self, container_id: str) -> None:
        await self.engine.remove_container(container_id)
        logger.info(f"Removed container {container_id}")
        await self._refresh_after_action()

    async def _refresh_after_action(self) -> None:
        # The action already succeeded, a failed list only leaves the old snapshot
        try:
            await self.refresh()
        except ServiceError as e:
            logger.warning(f"Failed to refresh containers: {e}")
