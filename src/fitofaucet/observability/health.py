"""Operational probes for the faucet.

Served on their own port, apart from the public API:
- /health: Liveness (the process is up)
- /ready: Readiness (Redis and the chain RPC both answer)
- /metrics: Prometheus exposition
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

logger = logging.getLogger(__name__)

CHECK_TIMEOUT_SECONDS = 5.0


class ProbeFailed(Exception):
    """Raised by a readiness check that ran but found its dependency unusable."""


class ReadinessCheck(ABC):
    """A dependency the faucet cannot serve requests without."""

    name: str

    @abstractmethod
    async def probe(self) -> None:
        """Return if the dependency is usable, raise otherwise."""


class CooldownStoreCheck(ReadinessCheck):
    """Redis answers PING.

    Parameters
    ----------
    store : CooldownStore
        Store exposing an async ``ping()``.
    """

    name = "redis"

    def __init__(self, store):
        self._store = store

    async def probe(self) -> None:
        if not await self._store.ping():
            raise ProbeFailed("ping failed")


class ChainCheck(ReadinessCheck):
    """The RPC endpoint accepts connections.

    Parameters
    ----------
    client : ChainClient
        Client exposing a blocking ``connected`` property.
    """

    name = "rpc"

    def __init__(self, client):
        self._client = client

    async def probe(self) -> None:
        connected = await asyncio.to_thread(lambda: self._client.connected)
        if not connected:
            raise ProbeFailed("not connected")


@dataclass
class Readiness:
    """Outcome of one round of readiness checks, keyed by check name."""

    ready: bool
    checks: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        body: dict = {"status": "ok" if self.ready else "not_ready"}
        if self.checks:
            body["checks"] = self.checks
        return body


async def _run_check(check: ReadinessCheck, timeout: float) -> str:
    try:
        await asyncio.wait_for(check.probe(), timeout)
    except ProbeFailed as e:
        return str(e)
    except TimeoutError:
        return f"timed out after {timeout:g}s"
    except Exception as e:
        logger.warning(
            "Readiness check raised",
            extra={"check": check.name, "error": f"{type(e).__name__}: {e}"},
        )
        return f"error: {type(e).__name__}: {e}"
    return "ok"


async def check_readiness(
    checks: Iterable[ReadinessCheck],
    timeout: float = CHECK_TIMEOUT_SECONDS,
) -> Readiness:
    """Run all checks concurrently, each bounded by ``timeout`` seconds."""
    checks = list(checks)
    outcomes = await asyncio.gather(*(_run_check(c, timeout) for c in checks))
    results = {c.name: outcome for c, outcome in zip(checks, outcomes, strict=True)}
    return Readiness(ready=all(o == "ok" for o in outcomes), checks=results)


class ProbeServer:
    """HTTP server for the probe and metrics endpoints.

    Parameters
    ----------
    host : str
        Host to bind to.
    port : int
        Port to bind to.
    checks : Iterable[ReadinessCheck]
        Checks run on every ``/ready`` request.
    """

    # Probes and Prometheus scrape from outside the container.
    def __init__(
        self,
        host: str = "0.0.0.0",  # noqa: S104
        port: int = 9090,
        checks: Iterable[ReadinessCheck] = (),
    ):
        self._host = host
        self._port = port
        self.checks: list[ReadinessCheck] = list(checks)
        self._runner: web.AppRunner | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/health", self._handle_health)
        app.router.add_get("/ready", self._handle_ready)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    @property
    def running(self) -> bool:
        return self._runner is not None

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        await web.TCPSite(self._runner, self._host, self._port).start()
        logger.info("Probe server started", extra={"host": self._host, "port": self._port})

    async def stop(self) -> None:
        if self._runner is None:
            return
        await self._runner.cleanup()
        self._runner = None
        logger.info("Probe server stopped")

    async def _handle_health(self, _request: web.Request) -> web.Response:
        return web.json_response({"status": "ok"})

    async def _handle_ready(self, _request: web.Request) -> web.Response:
        readiness = await check_readiness(self.checks)
        return web.json_response(readiness.to_dict(), status=200 if readiness.ready else 503)

    async def _handle_metrics(self, _request: web.Request) -> web.Response:
        response = web.Response(body=generate_latest(REGISTRY))
        response.content_type = CONTENT_TYPE_LATEST.split(";")[0]
        response.charset = "utf-8"
        return response
