# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the mail composer.

This module provides a centralized logging helper. The actual logging setup
(level, handlers, format) is done via ``logging.basicConfig()`` in the
command-line entry point to avoid duplicate handlers.

Example:
    Typical usage in a module::

        from mail_composer.logger import get_logger

        logger = get_logger("MailComposer.smtp")
        logger.info("Message handed to server")
"""

import logging


def get_logger(name: str = "MailComposer") -> logging.Logger:
    """Retrieve a logger instance.

    Handlers and formatters are not configured here; that responsibility
    lies with the application entry point.

    Args:
        name: The logger name. Defaults to "MailComposer".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)


logger = get_logger()
