from types import SimpleNamespace

import aiosmtplib
import pytest

from mail_composer.models import SMTPConfig
from mail_composer.transports.smtp_pool import SMTPPool


class DummySMTP:
    def __init__(self, hostname, port, use_tls=False, start_tls=False, local_hostname=None, timeout=None):
        self.hostname = hostname
        self.port = port
        self.use_tls = use_tls
        self.start_tls = start_tls
        self.local_hostname = local_hostname
        self.timeout = timeout
        self.login_credentials = None
        self.connected = False
        self.closed = False
        self.alive = True

    async def connect(self):
        self.connected = True

    async def login(self, user, password):
        self.login_credentials = (user, password)

    async def noop(self):
        if not self.alive:
            raise aiosmtplib.SMTPServerDisconnected("Connection dead")
        return SimpleNamespace(code=250, message="OK")

    async def quit(self):
        self.closed = True


@pytest.fixture(autouse=True)
def patch_aiosmtplib(monkeypatch):
    created = []

    def factory(**kwargs):
        smtp = DummySMTP(**kwargs)
        created.append(smtp)
        return smtp

    monkeypatch.setattr("mail_composer.transports.smtp_pool.aiosmtplib.SMTP", factory)
    return created


@pytest.fixture
def config():
    return SMTPConfig(host="smtp.local", port=25, user="user", password="pass", hostname="client.local")


@pytest.mark.asyncio
async def test_released_connection_is_reused(config):
    pool = SMTPPool(ttl=30)
    smtp1 = await pool.acquire(config)
    await pool.release(config, smtp1)
    smtp2 = await pool.acquire(config)

    assert smtp1 is smtp2
    assert smtp1.login_credentials == ("user", "pass")
    assert smtp1.local_hostname == "client.local"


@pytest.mark.asyncio
async def test_checked_out_connection_is_exclusive(config, patch_aiosmtplib):
    pool = SMTPPool(ttl=30)
    smtp1 = await pool.acquire(config)
    smtp2 = await pool.acquire(config)

    assert smtp1 is not smtp2
    assert len(patch_aiosmtplib) == 2


@pytest.mark.asyncio
async def test_expired_connection_is_discarded(config):
    pool = SMTPPool(ttl=-1)
    smtp1 = await pool.acquire(config)
    await pool.release(config, smtp1)

    smtp2 = await pool.acquire(config)
    assert smtp1.closed is True
    assert smtp2 is not smtp1


@pytest.mark.asyncio
async def test_dead_connection_is_replaced(config):
    pool = SMTPPool(ttl=30)
    smtp1 = await pool.acquire(config)
    await pool.release(config, smtp1)
    smtp1.alive = False

    smtp2 = await pool.acquire(config)
    assert smtp2 is not smtp1
    assert smtp1.closed is True


@pytest.mark.asyncio
async def test_connection_context_releases_on_success(config):
    pool = SMTPPool(ttl=30)
    async with pool.connection(config) as smtp:
        pass

    assert smtp.closed is False
    assert await pool.acquire(config) is smtp


@pytest.mark.asyncio
async def test_connection_context_closes_on_error(config):
    pool = SMTPPool(ttl=30)
    with pytest.raises(RuntimeError):
        async with pool.connection(config) as smtp:
            raise RuntimeError("transaction failed")

    assert smtp.closed is True
    assert pool.idle == {}


@pytest.mark.asyncio
async def test_cleanup_removes_dead_connections(monkeypatch, config):
    pool = SMTPPool(ttl=1)
    smtp = await pool.acquire(config)
    await pool.release(config, smtp)

    async def fake_is_alive(_smtp):
        return False

    monkeypatch.setattr(pool, "_is_alive", fake_is_alive)

    await pool.cleanup()
    assert smtp.closed is True
    assert pool.idle == {}


@pytest.mark.asyncio
async def test_close_quits_idle_connections(config):
    pool = SMTPPool(ttl=30)
    smtp = await pool.acquire(config)
    await pool.release(config, smtp)

    await pool.close()
    assert smtp.closed is True
    assert pool.idle == {}


@pytest.mark.asyncio
async def test_connect_respects_use_tls():
    pool = SMTPPool(ttl=30)
    smtp = await pool.acquire(SMTPConfig(host="smtp.secure", port=465, use_tls=True))
    assert smtp.use_tls is True
    assert smtp.start_tls is False
    assert smtp.login_credentials is None
