"""Tests for the probe server and readiness checks."""

import asyncio
from unittest.mock import MagicMock

import pytest
from aiohttp.test_utils import TestClient, TestServer
from redis import ConnectionError as RedisConnectionError

from fitofaucet.faucet.cooldown import CooldownStore
from fitofaucet.observability.health import (
    ChainCheck,
    CooldownStoreCheck,
    ProbeFailed,
    ProbeServer,
    Readiness,
    ReadinessCheck,
    check_readiness,
)


class FixedCheck(ReadinessCheck):
    """Check that passes, or fails with a fixed message."""

    def __init__(self, name: str, failure: str | None = None):
        self.name = name
        self._failure = failure

    async def probe(self) -> None:
        if self._failure:
            raise ProbeFailed(self._failure)


class HangingCheck(ReadinessCheck):
    name = "slow"

    async def probe(self) -> None:
        await asyncio.sleep(10)


class TestReadiness:
    def test_ready_without_checks(self):
        assert Readiness(ready=True).to_dict() == {"status": "ok"}

    def test_not_ready_lists_checks(self):
        readiness = Readiness(ready=False, checks={"redis": "ok", "rpc": "not connected"})
        assert readiness.to_dict() == {
            "status": "not_ready",
            "checks": {"redis": "ok", "rpc": "not connected"},
        }


class TestCheckReadiness:
    async def test_no_checks(self):
        assert await check_readiness([]) == Readiness(ready=True, checks={})

    async def test_all_pass(self):
        readiness = await check_readiness([FixedCheck("redis"), FixedCheck("rpc")])
        assert readiness.ready is True
        assert readiness.checks == {"redis": "ok", "rpc": "ok"}

    async def test_one_fails(self):
        readiness = await check_readiness([FixedCheck("redis"), FixedCheck("rpc", "down")])
        assert readiness.ready is False
        assert readiness.checks == {"redis": "ok", "rpc": "down"}

    async def test_timeout(self):
        readiness = await check_readiness([HangingCheck()], timeout=0.05)
        assert readiness.ready is False
        assert readiness.checks["slow"] == "timed out after 0.05s"

    async def test_unexpected_exception(self, fake_redis):
        """Errors other than ProbeFailed carry their type."""
        fake_redis.ping = MagicMock(side_effect=RedisConnectionError("Connection refused"))

        readiness = await check_readiness([CooldownStoreCheck(CooldownStore(fake_redis))])

        assert readiness.ready is False
        assert readiness.checks["redis"] == "error: StoreUnavailableError: Connection refused"


class TestCooldownStoreCheck:
    async def test_ok(self, fake_redis):
        await CooldownStoreCheck(CooldownStore(fake_redis)).probe()

    async def test_ping_false(self, fake_redis):
        fake_redis.ping = MagicMock(return_value=False)
        with pytest.raises(ProbeFailed, match="ping failed"):
            await CooldownStoreCheck(CooldownStore(fake_redis)).probe()


class TestChainCheck:
    async def test_connected(self):
        client = MagicMock()
        client.connected = True
        await ChainCheck(client).probe()

    async def test_not_connected(self):
        client = MagicMock()
        client.connected = False
        with pytest.raises(ProbeFailed, match="not connected"):
            await ChainCheck(client).probe()


class TestProbeServer:
    """Endpoint behaviour through the aiohttp test client."""

    @pytest.fixture
    def probe_server(self):
        return ProbeServer()

    @pytest.fixture
    async def client(self, probe_server):
        client = TestClient(TestServer(probe_server.build_app()))
        await client.start_server()
        yield client
        await client.close()

    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}

    async def test_ready_without_checks(self, client):
        resp = await client.get("/ready")
        assert resp.status == 200
        assert await resp.json() == {"status": "ok"}

    async def test_ready(self, client, probe_server):
        probe_server.checks += [FixedCheck("redis"), FixedCheck("rpc")]

        resp = await client.get("/ready")

        assert resp.status == 200
        assert (await resp.json())["checks"] == {"redis": "ok", "rpc": "ok"}

    async def test_not_ready(self, client, probe_server):
        probe_server.checks += [FixedCheck("redis"), FixedCheck("rpc", "not connected")]

        resp = await client.get("/ready")

        assert resp.status == 503
        data = await resp.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["rpc"] == "not connected"

    async def test_metrics(self, client):
        resp = await client.get("/metrics")
        assert resp.status == 200
        assert resp.content_type == "text/plain"
        assert "faucet_requests_total" in await resp.text()


async def test_probe_server_lifecycle():
    server = ProbeServer(host="127.0.0.1", port=19090, checks=[FixedCheck("redis")])

    await server.start()
    assert server.running

    await server.stop()
    assert not server.running
    await server.stop()
