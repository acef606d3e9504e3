"""Startup configuration for reviewbell.

Settings come from three places and are combined once into a frozen Settings
value that the app passes down:
- command line flags for the per-event inputs (room, token, names, PR, author)
- environment variables (or a .env file) for the record store URL templates
- an optional JSON file for logging, notification and selection preferences
"""

from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import urlsplit

from dotenv import load_dotenv

from core.composer import COMPOSER_MODES
from core.config import ID_PLACEHOLDER, NotificationConfig, RecordStoreUrls, SelectionConfig
from core.errors import ConfigurationError
from core.models import NameMapping, pull_request_id_from_url
from core.name_map import parse_name_list

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Used when neither --config nor REVIEWBELL_CONFIG is given; optional.
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")
CONFIG_ENV = "REVIEWBELL_CONFIG"

CREATE_TABLE_URL_ENV = "PULL_REQUEST_CREATE_TABLE_URL"
CHECK_URL_ENV = "PULL_REQUEST_CHECK_URL"
UPDATE_URL_ENV = "PULL_REQUEST_UPDATE_URL"

HIPCHAT_APIS = ("v2", "v1")
URL_SCHEMES = ("http", "https")

REQUIRED_ARGS = {
    "--hipchat_room_id": "HipChat room ID for posting notification messages",
    "--hipchat_auth_token": "HipChat authentication token for making RESTful requests",
    "--github_hipchat_name_list": (
        "A list of GitHub-HipChat username pairs joined by - and separated by , "
        "e.g. thaibui-thai,vikrim1-VictorKrimshteyn,mattmcclain-MattMcclain"
    ),
    "--github_pull_request_link": "The pull request URL in GitHub",
    "--github_commit_author": "The GitHub name of the committer of this pull request e.g. thaibui",
}

# Console logging is on when no settings file exists.
DEFAULT_LOGGING: dict[str, Any] = {"enabled": True, "level": "INFO", "console": True}


@dataclass(frozen=True)
class Settings:
    """Everything one run needs, validated before any network activity."""

    name_mapping: NameMapping
    pull_request_url: str
    commit_author: str
    store_urls: RecordStoreUrls
    notification: NotificationConfig
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    http_timeout: float = 10.0
    logging: Mapping[str, Any] = field(default_factory=lambda: dict(DEFAULT_LOGGING))
    banner: bool = True


def _non_empty(value: str) -> str:
    if not value.strip():
        raise argparse.ArgumentTypeError("value cannot be empty")
    return value.strip()


def _usage_epilog() -> str:
    lines = [f"This command requires {len(REQUIRED_ARGS)} arguments with their associated values.", ""]
    lines.extend(f"{key}: {description}" for key, description in REQUIRED_ARGS.items())
    example = " ".join(f"{key} <VALUE>" for key in REQUIRED_ARGS)
    lines.extend(["", "For example,", "", f"reviewbell {example}"])
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reviewbell",
        description="Assign a random reviewer to a GitHub pull request and announce it in HipChat.",
        epilog=_usage_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    for key, description in REQUIRED_ARGS.items():
        parser.add_argument(key, required=True, type=_non_empty, metavar="VALUE", help=description)
    parser.add_argument("--config", default=None, help="Path to a JSON settings file")
    parser.add_argument("--seed", default=None, help="Seed for reproducible reviewer selection")
    return parser


def _require_env(environ: Mapping[str, str], name: str) -> str:
    value = (environ.get(name) or "").strip()
    if not value:
        raise ConfigurationError(f"Missing environment variable {name}")
    return value


def load_store_urls(environ: Mapping[str, str]) -> RecordStoreUrls:
    """Read the record store URL templates from the environment."""

    urls = RecordStoreUrls(
        create_table=_require_env(environ, CREATE_TABLE_URL_ENV),
        check=_require_env(environ, CHECK_URL_ENV),
        update=_require_env(environ, UPDATE_URL_ENV),
    )
    for name, template in (
        (CREATE_TABLE_URL_ENV, urls.create_table),
        (CHECK_URL_ENV, urls.check),
        (UPDATE_URL_ENV, urls.update),
    ):
        if urlsplit(template).scheme not in URL_SCHEMES:
            raise ConfigurationError(f"{name} must be an http or https URL, got {template!r}")
    for name, template in ((CHECK_URL_ENV, urls.check), (UPDATE_URL_ENV, urls.update)):
        if ID_PLACEHOLDER not in template:
            raise ConfigurationError(f"{name} must contain the {ID_PLACEHOLDER} placeholder")
    return urls


def _resolve_config_path(explicit: Optional[str], environ: Mapping[str, str]) -> Optional[str]:
    if explicit:
        return explicit
    if environ.get(CONFIG_ENV):
        return environ[CONFIG_ENV]
    if os.path.exists(DEFAULT_CONFIG_PATH):
        return DEFAULT_CONFIG_PATH
    return None


def load_json_config(path: Optional[str]) -> dict:
    """Load the optional JSON settings file. Returns {} when there is none."""

    if path is None:
        return {}
    if not os.path.exists(path):
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as handle:
            config = json.load(handle)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    if not isinstance(config, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return config


def _notification_config(raw: Mapping[str, Any], room_id: str, auth_token: str) -> NotificationConfig:
    api = raw.get("api", "v2")
    if api not in HIPCHAT_APIS:
        raise ConfigurationError(f"notifications.api must be one of {', '.join(HIPCHAT_APIS)}")
    message_format = raw.get("format", "text")
    if message_format not in COMPOSER_MODES:
        raise ConfigurationError(f"notifications.format must be one of {', '.join(COMPOSER_MODES)}")
    return NotificationConfig(
        room_id=room_id,
        auth_token=auth_token,
        api=api,
        message_format=message_format,
        color=str(raw.get("color", "purple")),
        sender=str(raw.get("from", "Pull Request")),
    )


def _selection_config(raw: Mapping[str, Any], seed_override: Optional[str]) -> SelectionConfig:
    try:
        max_reviewers = int(raw.get("max_reviewers", 2))
    except (TypeError, ValueError) as e:
        raise ConfigurationError("selection.max_reviewers must be an integer") from e
    if max_reviewers < 1:
        raise ConfigurationError("selection.max_reviewers must be at least 1")
    seed = seed_override if seed_override is not None else raw.get("seed")
    return SelectionConfig(max_reviewers=max_reviewers, seed=None if seed is None else str(seed))


def _http_timeout(raw: Mapping[str, Any]) -> float:
    try:
        timeout = float(raw.get("timeout_seconds", 10))
    except (TypeError, ValueError) as e:
        raise ConfigurationError("http.timeout_seconds must be a number") from e
    if timeout <= 0:
        raise ConfigurationError("http.timeout_seconds must be positive")
    return timeout


def load_settings(
    argv: Optional[Sequence[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Parse flags, environment and settings file into one Settings value.

    Argparse usage errors exit the process with status 2; every other problem
    raises ConfigurationError.
    """

    if environ is None:
        load_dotenv()
        environ = os.environ

    args = build_parser().parse_args(argv)
    name_mapping = parse_name_list(args.github_hipchat_name_list)
    try:
        pull_request_id_from_url(args.github_pull_request_link)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    store_urls = load_store_urls(environ)
    config = load_json_config(_resolve_config_path(args.config, environ))

    logging_config = config.get("logging", DEFAULT_LOGGING)
    return Settings(
        name_mapping=name_mapping,
        pull_request_url=args.github_pull_request_link,
        commit_author=args.github_commit_author,
        store_urls=store_urls,
        notification=_notification_config(
            config.get("notifications", {}),
            args.hipchat_room_id,
            args.hipchat_auth_token,
        ),
        selection=_selection_config(config.get("selection", {}), args.seed),
        http_timeout=_http_timeout(config.get("http", {})),
        logging=logging_config,
        banner=bool(config.get("banner", True)),
    )
