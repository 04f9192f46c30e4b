"""Tests for transport selection, delivery and the send callback."""

import asyncio
import logging

import pytest
from prometheus_client import CollectorRegistry

from mail_composer.context import CompositionContext
from mail_composer.errors import TransportError, TransportNotConfiguredError
from mail_composer.events import DEFER
from mail_composer.message import Message, send_mail
from mail_composer.models import SMTPConfig
from mail_composer.prometheus import MailMetrics
from mail_composer.transports import SMTPTransport, Transport, TransportRegistry


class FakeTransport(Transport):
    def __init__(self, name="fake", result=True, error=None, configured=True, envelope_bcc=False):
        self.name = name
        self.result = result
        self.error = error
        self.configured = configured
        self.supports_envelope_bcc = envelope_bcc
        self.sent = []

    def is_configured(self):
        return self.configured

    async def send(self, message):
        self.sent.append(message)
        if self.error is not None:
            raise self.error
        return self.result


def make_message(registry=None, **options):
    options.setdefault("sender", "sender@example.com")
    options.setdefault("to", "to@example.com")
    options.setdefault("subject", "Hello")
    options.setdefault("body", "Hello world!")
    return Message(registry=registry or TransportRegistry(), context=CompositionContext(), **options)


class CallbackRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, error, success):
        self.calls.append((error, success))


@pytest.mark.asyncio
async def test_send_reports_success():
    transport = FakeTransport()
    message = make_message(transport=transport)
    callback = CallbackRecorder()

    task = message.send(callback)
    assert isinstance(task, asyncio.Task)
    await task

    assert callback.calls == [(None, True)]
    assert transport.sent[0].envelope_from == "sender@example.com"
    assert transport.sent[0].to == ["to@example.com"]


@pytest.mark.asyncio
async def test_send_reports_deferred():
    message = make_message(transport=FakeTransport(result=False))
    callback = CallbackRecorder()

    await message.send(callback)
    assert callback.calls == [(None, False)]


@pytest.mark.asyncio
async def test_send_reports_transport_failure():
    error = TransportError("server exploded", transport="fake")
    message = make_message(transport=FakeTransport(error=error))
    callback = CallbackRecorder()

    await message.send(callback)
    assert callback.calls == [(error, None)]


@pytest.mark.asyncio
async def test_send_without_callback_raises_from_task():
    message = make_message(transport=FakeTransport(error=TransportError("boom")))
    task = message.send()

    with pytest.raises(TransportError):
        await task


@pytest.mark.asyncio
async def test_missing_transport_reported_through_callback():
    message = make_message()
    callback = CallbackRecorder()

    await message.send(callback)

    assert len(callback.calls) == 1
    error, success = callback.calls[0]
    assert isinstance(error, TransportNotConfiguredError)
    assert str(error) == "Transfer method not defined"
    assert success is None


@pytest.mark.asyncio
async def test_async_callback_is_awaited():
    received = []

    async def callback(error, success):
        await asyncio.sleep(0)
        received.append((error, success))

    await make_message(transport=FakeTransport()).send(callback)
    assert received == [(None, True)]


@pytest.mark.asyncio
async def test_send_mail_shortcut():
    transport = FakeTransport()
    callback = CallbackRecorder()

    message = send_mail(
        callback,
        transport=transport,
        registry=TransportRegistry(),
        sender="sender@example.com",
        to="to@example.com",
        subject="Shortcut",
    )
    await message.task

    assert callback.calls == [(None, True)]
    assert "Subject: Shortcut" in transport.sent[0].headers


def test_message_transport_wins():
    registry = TransportRegistry()
    registry.register("global", FakeTransport("global"))
    own = FakeTransport("own")

    message = make_message(registry, transport=own, server=SMTPConfig(host="smtp.example.com"))
    assert message.select_transport() == ("own", own)


def test_server_wins_over_registry():
    registry = TransportRegistry()
    registry.register("global", FakeTransport("global"))

    message = make_message(registry, server=SMTPConfig(host="smtp.example.com", port=587))
    name, transport = message.select_transport()

    assert name == "smtp"
    assert isinstance(transport, SMTPTransport)
    assert transport.config.port == 587
    assert message.select_transport()[1] is transport


def test_unconfigured_server_falls_back_to_registry():
    registry = TransportRegistry()
    fallback = FakeTransport("global")
    registry.register("global", fallback)

    message = make_message(registry, server=SMTPConfig())
    assert message.select_transport() == ("global", fallback)


def test_registry_order():
    registry = TransportRegistry()
    registry.register("smtp", FakeTransport("smtp", configured=False))
    sendmail = FakeTransport("sendmail")
    registry.register("sendmail", sendmail)

    assert make_message(registry).select_transport() == ("sendmail", sendmail)
    assert make_message(TransportRegistry()).select_transport() is None


@pytest.mark.asyncio
async def test_bcc_follows_transport_capability():
    plain = FakeTransport()
    await make_message(transport=plain, bcc="hidden@example.com").deliver()
    assert "Bcc:" not in plain.sent[0].headers
    assert plain.sent[0].recipients == ["to@example.com", "hidden@example.com"]

    header_reader = FakeTransport(envelope_bcc=True)
    await make_message(transport=header_reader, bcc="hidden@example.com").deliver()
    assert "Bcc: hidden@example.com" in header_reader.sent[0].headers


@pytest.mark.asyncio
async def test_fields_are_mutable_until_send():
    transport = FakeTransport()
    message = make_message(transport=transport)
    message.subject = "Changed\nsubject"
    message.to = "other@example.com"

    await message.deliver()
    composed = transport.sent[0]
    assert "\r\nSubject: Changed subject\r\n" in composed.headers
    assert composed.to == ["other@example.com"]


@pytest.mark.asyncio
async def test_transport_events_reach_subscribers():
    class DeferringTransport(FakeTransport):
        async def send(self, message):
            message.events.publish(DEFER, message.to[0])
            return False

    message = make_message(transport=DeferringTransport())
    deferred = []
    message.events.subscribe(DEFER, deferred.append)

    assert await message.deliver() is False
    assert deferred == ["to@example.com"]


@pytest.mark.asyncio
async def test_metrics_are_updated():
    metrics = MailMetrics(CollectorRegistry())
    await make_message(transport=FakeTransport(), metrics=metrics).deliver()

    failing = make_message(transport=FakeTransport(error=TransportError("boom")), metrics=metrics)
    with pytest.raises(TransportError):
        await failing.deliver()

    labels = {"transport": "fake"}
    assert metrics.registry.get_sample_value("mc_composed_total", labels) == 2.0
    assert metrics.registry.get_sample_value("mc_sent_total", labels) == 1.0
    assert metrics.registry.get_sample_value("mc_errors_total", labels) == 1.0


@pytest.mark.asyncio
async def test_debug_logging(caplog):
    caplog.set_level(logging.INFO)
    await make_message(transport=FakeTransport(), debug=True).deliver()

    assert "mail-composer, 0.1.0" in caplog.text
    assert "Used transfer method: fake" in caplog.text


def test_sequence_numbers_increase():
    context = CompositionContext()
    first = Message(registry=TransportRegistry(), context=context)
    second = Message(registry=TransportRegistry(), context=context)
    assert second.sequence > first.sequence


def test_send_requires_running_loop():
    with pytest.raises(RuntimeError):
        make_message(transport=FakeTransport()).send()


@pytest.mark.asyncio
async def test_failing_callback_is_logged(caplog):
    def callback(error, success):
        raise RuntimeError("callback broke")

    task = make_message(transport=FakeTransport()).send(callback)
    with caplog.at_level(logging.ERROR):
        assert await task is True

    assert "Send callback of message" in caplog.text
