"""
Two-party rendezvous barrier.

Before two parties exchange DLOG proofs they meet under an opaque pair
id.  The first caller under an id waits until a second caller arrives or
the wait times out; on timeout the caller should retry with a fresh id.
A third caller under an id that already paired is refused rather than
left waiting.

This is session bookkeeping for the calling protocol; the proof engine
never sees it.

HTTP interface (aiohttp)
------------------------
``GET /wait-for-second-party/{pair_id}``

    200  {"status": "synced"}          both parties present
    408  {"error": "timeout"}          no second party in time
    409  {"error": "already paired"}   id already used by two parties

``GET /health``  →  {"status": "ok", "waiting": <n>}
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp
from aiohttp import web

from .config import (
    Config,
    DEFAULT_WAIT_TIMEOUT,
    setup_logging,
)
from .errors import (
    RendezvousConflict,
    RendezvousError,
    RendezvousTimeout,
)

logger = logging.getLogger(__name__)

WAIT_ROUTE = "/wait-for-second-party/{pair_id}"


# ── barrier ─────────────────────────────────────────────────────────────

class RendezvousBarrier:
    """
    Pairs callers by id on a single event loop.

    Table mutations never span an ``await``, so the loop itself
    serialises them.
    """

    def __init__(
        self,
        wait_timeout: float = DEFAULT_WAIT_TIMEOUT,
        paired_retention: Optional[float] = None,
    ) -> None:
        self.wait_timeout = wait_timeout
        self.paired_retention = (
            wait_timeout if paired_retention is None else paired_retention
        )
        self._waiting: Dict[str, asyncio.Future] = {}
        self._paired: Dict[str, float] = {}

    @property
    def waiting_count(self) -> int:
        return sum(1 for f in self._waiting.values() if not f.done())

    def is_paired(self, pair_id: str) -> bool:
        self._expire_paired(time.monotonic())
        return pair_id in self._paired

    def _expire_paired(self, now: float) -> None:
        cutoff = now - self.paired_retention
        stale = [k for k, t in self._paired.items() if t <= cutoff]
        for k in stale:
            del self._paired[k]

    async def wait_for_peer(self, pair_id: str) -> None:
        """
        Block until a second party joins *pair_id*.

        Raises
        ------
        RendezvousTimeout
            No second party within ``wait_timeout`` seconds.
        RendezvousConflict
            *pair_id* already has two parties.
        """
        loop = asyncio.get_running_loop()
        now = time.monotonic()
        self._expire_paired(now)

        if pair_id in self._paired:
            logger.warning("Third party refused for pair id %r", pair_id)
            raise RendezvousConflict(pair_id, "pair id already used")

        waiter = self._waiting.pop(pair_id, None)
        if waiter is not None and not waiter.done():
            waiter.set_result(None)
            self._paired[pair_id] = now
            logger.info("Pair id %r synced", pair_id)
            return

        waiter = loop.create_future()
        self._waiting[pair_id] = waiter
        logger.debug("Waiting for second party on %r", pair_id)
        try:
            await asyncio.wait_for(waiter, self.wait_timeout)
        except asyncio.TimeoutError:
            if waiter.done() and not waiter.cancelled():
                # second party arrived as the timeout fired
                return
            self._discard(pair_id, waiter)
            logger.info(
                "Pair id %r timed out after %.1fs", pair_id, self.wait_timeout)
            raise RendezvousTimeout(
                pair_id, "second party did not arrive") from None
        except asyncio.CancelledError:
            self._discard(pair_id, waiter)
            raise

    def _discard(self, pair_id: str, waiter: asyncio.Future) -> None:
        if self._waiting.get(pair_id) is waiter:
            del self._waiting[pair_id]


# ── HTTP service ────────────────────────────────────────────────────────

@dataclass
class RendezvousServer:
    """
    HTTP front end for a ``RendezvousBarrier``.
    """
    host: str = "127.0.0.1"
    port: int = 3030
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT
    paired_retention: Optional[float] = None

    barrier: RendezvousBarrier = field(init=False)
    _runner: Any = None
    _site: Any = None

    def __post_init__(self):
        self.barrier = RendezvousBarrier(
            self.wait_timeout, self.paired_retention)

    @classmethod
    def from_config(cls, config: Config) -> "RendezvousServer":
        rc = config.rendezvous
        return cls(
            host=rc.host,
            port=rc.port,
            wait_timeout=rc.wait_timeout,
            paired_retention=rc.paired_retention,
        )

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get(WAIT_ROUTE, self._handle_wait)
        app.router.add_get("/health", self._handle_health)
        return app

    async def start(self) -> None:
        """Start the rendezvous server."""
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()

        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()

        logger.info(
            f"Rendezvous server started on http://{self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the rendezvous server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._site = None
            logger.info("Rendezvous server stopped")

    async def _handle_wait(self, request: web.Request) -> web.Response:
        pair_id = request.match_info["pair_id"]
        try:
            await self.barrier.wait_for_peer(pair_id)
        except RendezvousTimeout:
            return web.json_response({"error": "timeout"}, status=408)
        except RendezvousConflict:
            return web.json_response({"error": "already paired"}, status=409)
        return web.json_response({"status": "synced"})

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({
            "status": "ok",
            "waiting": self.barrier.waiting_count,
        })


# ── client ──────────────────────────────────────────────────────────────

class RendezvousClient:
    """
    Client for the rendezvous HTTP service.

    Pass an existing ``aiohttp.ClientSession`` to share a connection
    pool; otherwise one is created per call.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[aiohttp.ClientSession] = None,
        request_timeout: float = DEFAULT_WAIT_TIMEOUT + 5.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._session = session
        self.request_timeout = request_timeout

    def _url(self, pair_id: str) -> str:
        return f"{self.base_url}/wait-for-second-party/{quote(pair_id, safe='')}"

    async def wait_for_peer(self, pair_id: str) -> None:
        if self._session is not None:
            await self._request(self._session, pair_id)
            return
        async with aiohttp.ClientSession() as session:
            await self._request(session, pair_id)

    async def _request(
        self, session: aiohttp.ClientSession, pair_id: str,
    ) -> None:
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        async with session.get(self._url(pair_id), timeout=timeout) as resp:
            if resp.status == 200:
                return
            if resp.status == 408:
                raise RendezvousTimeout(pair_id, "second party did not arrive")
            if resp.status == 409:
                raise RendezvousConflict(pair_id, "pair id already used")
            body = await resp.text()
            raise RendezvousError(
                pair_id, f"unexpected HTTP {resp.status}: {body[:200]}")


# ── entry point ─────────────────────────────────────────────────────────

def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Two-party rendezvous barrier service")
    parser.add_argument("--config", help="JSON configuration file")
    parser.add_argument("--host", help="listen address")
    parser.add_argument("--port", type=int, help="listen port")
    parser.add_argument(
        "--timeout", type=float, help="seconds a first party waits")
    parser.add_argument("--log-level", help="logging level")
    return parser.parse_args(argv)


async def _serve(server: RendezvousServer) -> None:
    await server.start()
    try:
        await asyncio.Event().wait()
    finally:
        await server.stop()


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    config = Config.load(args.config) if args.config else Config()

    if args.host:
        config.rendezvous.host = args.host
    if args.port is not None:
        config.rendezvous.port = args.port
    if args.timeout is not None:
        config.rendezvous.wait_timeout = args.timeout
    if args.log_level:
        config.log.level = args.log_level

    errors = config.validate()
    if errors:
        for e in errors:
            print(f"config error: {e}")
        return 2

    setup_logging(config.log)
    try:
        asyncio.run(_serve(RendezvousServer.from_config(config)))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
