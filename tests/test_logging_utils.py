"""Mini README: Tests for the single-handler logging policy."""

from __future__ import annotations

import logging

from eventledger.logging_utils import configure_root_logger, get_logger


def test_repeated_configuration_keeps_one_handler() -> None:
    root = logging.getLogger()
    get_logger("eventledger.tests")
    handlers_before = list(root.handlers)

    configure_root_logger(logging.DEBUG)
    configure_root_logger(logging.WARNING)

    assert root.handlers == handlers_before
    assert root.level == logging.WARNING
    configure_root_logger()
