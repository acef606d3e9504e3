"""Application entry point for reviewbell."""

from __future__ import annotations

import asyncio
import logging
import os
import random
import sys
from logging.handlers import RotatingFileHandler
from typing import Mapping, Optional, Sequence

from art import tprint

import settings
from adapters.hipchat_notifier import build_notifier
from adapters.http_transport import HttpTransport
from adapters.record_store import HttpRecordStore
from core.composer import MessageComposer
from core.coordinator import AssignmentCoordinator
from core.errors import ConfigurationError, ReviewBellError
from core.models import AssignmentOutcome

NAME = "REVIEWBELL"
FONT = "tarty-1"

EXIT_OK = 0
EXIT_FAILURE = 1


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: Mapping, always: Sequence[str] = ()) -> list[str]:
    values = [value for value in always if value]
    redact_cfg = config.get("redact", {}) if config else {}
    if redact_cfg.get("enabled", False):
        for name in redact_cfg.get("patterns", []):
            value = os.getenv(name)
            if value:
                values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: Mapping, secrets: Sequence[str] = ()) -> None:
    if not config.get("enabled", False):
        return

    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(config, secrets), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/reviewbell.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
            backupCount=int(file_cfg.get("backup_count", 5)),
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers, force=True)


def build_coordinator(config: settings.Settings) -> AssignmentCoordinator:
    """Wire adapters and core components from validated settings."""

    transport = HttpTransport(timeout=config.http_timeout)
    rng = random.Random(config.selection.seed) if config.selection.seed is not None else random.Random()
    return AssignmentCoordinator(
        store=HttpRecordStore(config.store_urls, transport),
        notifier=build_notifier(config.notification, transport),
        name_mapping=config.name_mapping,
        composer=MessageComposer(config.notification.message_format),
        max_reviewers=config.selection.max_reviewers,
        rng=rng,
    )


def run(config: settings.Settings) -> AssignmentOutcome:
    coordinator = build_coordinator(config)
    return asyncio.run(coordinator.run(config.pull_request_url, config.commit_author))


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        config = settings.load_settings(argv)
    except ConfigurationError as e:
        print(f"reviewbell: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if config.banner:
        _print_banner()
    _configure_logging(config.logging, secrets=[config.notification.auth_token])
    logger = logging.getLogger(__name__)

    try:
        outcome = run(config)
    except ReviewBellError as e:
        logger.error("Reviewer assignment failed: %s", e)
        return EXIT_FAILURE

    logger.info("Finished with outcome %s", outcome.value)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
