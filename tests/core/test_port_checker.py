"""Tests for the debounced port checker."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from container_helper.core.port_checker import PortAvailabilityChecker
from container_helper.services.exceptions import DockerServiceError, TransportError


class TestPortAvailabilityChecker:
    """Test cases for PortAvailabilityChecker."""

    @pytest.mark.asyncio
    async def test_single_check(self, mock_engine):
        mock_engine.check_port.return_value = True
        checker = PortAvailabilityChecker(mock_engine, quiet_period=0.01)

        checker.check_port(2222)
        assert checker.checking
        await checker.wait()

        assert not checker.checking
        assert checker.port == 2222
        assert checker.in_use is True
        assert checker.available is False

    @pytest.mark.asyncio
    async def test_rapid_requests_coalesce(self, mock_engine):
        """Test three quick requests give one engine query for the last port."""
        checker = PortAvailabilityChecker(mock_engine, quiet_period=0.05)

        checker.check_port(2222)
        checker.check_port(2223)
        checker.check_port(2224)
        await checker.wait()

        mock_engine.check_port.assert_awaited_once_with(2224)
        assert checker.port == 2224
        assert checker.available is True

    @pytest.mark.asyncio
    async def test_superseded_result_discarded(self, mock_engine):
        """Test an in-flight answer for an older port is never applied."""
        release_first = asyncio.Event()

        async def check_port(port):
            if port == 2222:
                await release_first.wait()
                return True
            return False

        mock_engine.check_port = AsyncMock(side_effect=check_port)
        checker = PortAvailabilityChecker(mock_engine, quiet_period=0)

        checker.check_port(2222)
        # Let the timer fire and the first query start
        for _ in range(5):
            await asyncio.sleep(0)
        assert mock_engine.check_port.await_count == 1

        checker.check_port(2223)
        for _ in range(5):
            await asyncio.sleep(0)
        assert checker.port == 2223
        assert checker.in_use is False

        release_first.set()
        await checker.wait()

        assert checker.port == 2223
        assert checker.in_use is False
        assert mock_engine.check_port.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        TransportError("connection refused"),
        DockerServiceError("Failed to list containers", status_code=500),
    ])
    async def test_failure_reports_available(self, mock_engine, caplog, error):
        mock_engine.check_port.side_effect = error
        checker = PortAvailabilityChecker(mock_engine, quiet_period=0)

        checker.check_port(8080)
        await checker.wait()

        assert checker.available is True
        assert "assuming available" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_before_first_result(self, mock_engine):
        checker = PortAvailabilityChecker(mock_engine)
        assert checker.available is None
        assert not checker.checking

    @pytest.mark.asyncio
    async def test_close_cancels_pending_timer(self, mock_engine):
        checker = PortAvailabilityChecker(mock_engine, quiet_period=10)

        checker.check_port(2222)
        await checker.close()

        assert not checker.checking
        mock_engine.check_port.assert_not_awaited()
        assert checker.in_use is None

    @pytest.mark.asyncio
    async def test_unexpected_error_reports_available(self, mock_engine, caplog):
        mock_engine.check_port.side_effect = RuntimeError("engine crashed")
        checker = PortAvailabilityChecker(mock_engine, quiet_period=0)

        checker.check_port(8080)
        await checker.wait()

        assert checker.port == 8080
        assert checker.available is True
        assert "Unexpected error checking port 8080" in caplog.text
