# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Lightweight asyncio-friendly SMTP connection pool."""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional, Tuple

import aiosmtplib

from ..logger import get_logger
from ..models import SMTPConfig

PoolKey = Tuple[str, int, Optional[str], Optional[str], bool, bool]


def _pool_key(config: SMTPConfig) -> PoolKey:
    return (config.host or "", config.port, config.user, config.password, config.use_tls, config.start_tls)


class SMTPPool:
    """Reuse idle SMTP connections between deliveries to the same server.

    A connection is checked out exclusively for the duration of one SMTP
    transaction and returned afterwards, so concurrent sends never share a
    session.
    """

    def __init__(self, ttl: int = 300):
        """Create a pool whose idle connections expire after ``ttl`` seconds."""
        self.ttl = ttl
        self.idle: Dict[PoolKey, List[Tuple[aiosmtplib.SMTP, float]]] = {}
        self.lock = asyncio.Lock()
        self.logger = get_logger("MailComposer.smtp_pool")

    async def _connect(self, config: SMTPConfig) -> aiosmtplib.SMTP:
        """Open a new SMTP connection and authenticate if needed."""
        smtp = aiosmtplib.SMTP(
            hostname=config.host,
            port=config.port,
            use_tls=config.use_tls,
            start_tls=config.start_tls,
            local_hostname=config.hostname,
            timeout=config.timeout,
        )

        async def _do_connect():
            await smtp.connect()
            if config.user and config.password:
                await smtp.login(config.user, config.password)

        # aiosmtplib's own timeout covers single reads; bound the whole handshake too
        await asyncio.wait_for(_do_connect(), timeout=config.timeout + 5.0)
        return smtp

    async def _is_alive(self, smtp: aiosmtplib.SMTP) -> bool:
        """Return ``True`` when the connection responds correctly to NOOP."""
        try:
            response = await asyncio.wait_for(smtp.noop(), timeout=5.0)
        except (aiosmtplib.SMTPException, asyncio.TimeoutError, OSError):
            return False
        return response.code == 250

    async def _quit(self, smtp: aiosmtplib.SMTP) -> None:
        try:
            await smtp.quit()
        except (aiosmtplib.SMTPException, asyncio.TimeoutError, OSError) as exc:
            self.logger.debug("Ignoring error while closing SMTP connection: %s", exc)

    async def acquire(self, config: SMTPConfig) -> aiosmtplib.SMTP:
        """Return an idle live connection for ``config`` or open a new one."""
        key = _pool_key(config)
        while True:
            async with self.lock:
                entries = self.idle.get(key)
                entry = entries.pop() if entries else None
            if entry is None:
                break
            smtp, last_used = entry
            if (time.time() - last_used) < self.ttl and await self._is_alive(smtp):
                return smtp
            await self._quit(smtp)
        return await self._connect(config)

    async def release(self, config: SMTPConfig, smtp: aiosmtplib.SMTP) -> None:
        """Give ``smtp`` back to the pool for later reuse."""
        async with self.lock:
            self.idle.setdefault(_pool_key(config), []).append((smtp, time.time()))

    @asynccontextmanager
    async def connection(self, config: SMTPConfig) -> AsyncIterator[aiosmtplib.SMTP]:
        """Check a connection out for one transaction.

        The connection goes back to the pool when the block succeeds and is
        closed when it raises.
        """
        smtp = await self.acquire(config)
        try:
            yield smtp
        except BaseException:
            await self._quit(smtp)
            raise
        await self.release(config, smtp)

    async def cleanup(self) -> None:
        """Close idle connections that expired or stopped answering."""
        now = time.time()
        async with self.lock:
            items = [(key, entry) for key, entries in self.idle.items() for entry in entries]
            self.idle = {}

        keep: List[Tuple[PoolKey, Tuple[aiosmtplib.SMTP, float]]] = []
        for key, (smtp, last_used) in items:
            if (now - last_used) <= self.ttl and await self._is_alive(smtp):
                keep.append((key, (smtp, last_used)))
            else:
                await self._quit(smtp)

        async with self.lock:
            for key, entry in keep:
                self.idle.setdefault(key, []).append(entry)

    async def close(self) -> None:
        """Close every idle connection."""
        async with self.lock:
            items = [smtp for entries in self.idle.values() for smtp, _ in entries]
            self.idle = {}
        for smtp in items:
            await self._quit(smtp)
