# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Local delivery through the sendmail binary."""

from __future__ import annotations

import asyncio

from ..errors import TransportError
from ..logger import get_logger
from ..models import SendmailConfig
from .base import ComposedMessage, Transport


class SendmailTransport(Transport):
    """Pipe the composed message into ``sendmail``.

    With the default ``-i -t`` arguments sendmail reads the recipients from
    the To, Cc and Bcc headers and removes the Bcc header before delivery,
    which is why this transport asks for the Bcc header to be emitted.
    Without ``-t`` the envelope recipients are passed on the command line.
    """

    name = "sendmail"
    supports_envelope_bcc = True

    def __init__(self, config: SendmailConfig, log_delivery_activity: bool = False):
        self.config = config
        self.log_delivery_activity = log_delivery_activity
        self.logger = get_logger("MailComposer.sendmail")

    def is_configured(self) -> bool:
        return self.config.is_configured()

    def command(self, message: ComposedMessage) -> list[str]:
        """Return the argv used to deliver ``message``."""
        argv = [self.config.path, *self.config.args]
        if message.envelope_from and "-f" not in self.config.args:
            argv.extend(["-f", message.envelope_from])
        if "-t" not in self.config.args:
            argv.append("--")
            argv.extend(message.recipients)
        return argv

    async def send(self, message: ComposedMessage) -> bool:
        if not self.is_configured():
            raise TransportError("sendmail path is not configured", transport=self.name)

        argv = self.command(message)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await process.communicate(message.as_bytes())
        except OSError as exc:
            raise TransportError(f"Cannot run {self.config.path}: {exc}", transport=self.name) from exc

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise TransportError(
                f"sendmail exited with status {process.returncode}: {detail}", transport=self.name
            )

        if self.log_delivery_activity:
            self.logger.info("Message #%s handed to %s", message.sequence, self.config.path)
        return True
