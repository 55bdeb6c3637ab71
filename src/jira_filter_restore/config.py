"""Configuration helpers for the filter restore tooling.

Settings are held in small typed dataclasses that validate themselves on
construction.  Connection details may come from a YAML file, from explicit
command line values, or from environment variables named in the
configuration; the secret is prompted for interactively as a last resort.
The resulting :class:`AppConfig` is passed explicitly to every component.
"""
from __future__ import annotations

import getpass
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping

EXISTENCE_POLICIES = ("exactly-one", "any")
DEFAULT_DUMMY_JQL = "order by created asc"


def _parse_bool(value: object) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "t", "yes", "y", "on"}:
            return True
        if lowered in {"0", "false", "f", "no", "n", "off", ""}:
            return False
    return False


def _from_env(value: str | None, env_name: str | None) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if env_name:
        env_value = os.getenv(env_name)
        if env_value is not None and env_value.strip():
            return env_value.strip()
    return None


def _clean_env_name(value: object, default: str) -> str | None:
    if value is None:
        return default
    cleaned = str(value).strip()
    return cleaned or None


@dataclass(slots=True)
class JiraConfig:
    """HTTP connectivity configuration for Jira."""

    host: str | None = None
    scheme: str = "https"
    user: str | None = None
    token: str | None = field(default=None, repr=False)
    host_env: str | None = "JIRA_HOST"
    user_env: str | None = "JIRA_USER"
    token_env: str | None = "JIRA_API_TOKEN"
    page_size: int = 50
    timeout_s: float = 30.0
    ca_bundle: str | bool | None = None
    ca_bundle_env: str | None = "JIRA_CA_BUNDLE"

    def __post_init__(self) -> None:
        host = _from_env(self.host, self.host_env)
        if not host:
            msg = "Jira configuration requires a host or a populated host_env"
            raise ValueError(msg)
        # Accept a pasted URL as the host.
        if "://" in host:
            self.scheme, host = host.split("://", 1)
        self.host = host.rstrip("/")
        self.scheme = self.scheme.strip().lower().rstrip(":/")
        if self.scheme not in {"http", "https"}:
            msg = f"Unsupported scheme {self.scheme!r}; expected http or https"
            raise ValueError(msg)
        self.user = _from_env(self.user, self.user_env)
        if self.ca_bundle is None and self.ca_bundle_env:
            env_value = os.getenv(self.ca_bundle_env)
            if env_value:
                cleaned = env_value.strip()
                self.ca_bundle = False if cleaned.lower() in {"false", "0", "no"} else cleaned
        if self.page_size <= 0:
            msg = "Page size must be positive"
            raise ValueError(msg)
        if self.timeout_s <= 0:
            msg = "Timeout must be positive"
            raise ValueError(msg)

    @property
    def base_url(self) -> str:
        return f"{self.scheme}://{self.host}"

    def get_user(self, prompt: Callable[[str], str] = input) -> str:
        """Return the account identity, prompting when it is not configured."""

        if not self.user:
            self.user = prompt("Jira user (email): ").strip()
        if not self.user:
            msg = "A Jira user is required"
            raise RuntimeError(msg)
        return self.user

    def get_token(self, prompt: Callable[[str], str] = getpass.getpass) -> str:
        """Return the API token from config, environment or an interactive prompt."""

        token = _from_env(self.token, self.token_env)
        if not token:
            token = prompt(f"API token for {self.user or 'Jira'}: ").strip()
        if not token:
            msg = "A Jira API token is required"
            raise RuntimeError(msg)
        self.token = token
        return token


@dataclass(slots=True)
class RestoreConfig:
    """Behaviour switches for filter reconstruction."""

    existence_policy: str = "exactly-one"
    dedupe_dependencies: bool = False
    dummy_jql: str = DEFAULT_DUMMY_JQL
    pause_between_filters: bool = False
    pause_between_actions: bool = False

    def __post_init__(self) -> None:
        if self.existence_policy not in EXISTENCE_POLICIES:
            msg = f"Existence policy must be one of {', '.join(EXISTENCE_POLICIES)}"
            raise ValueError(msg)
        if not self.dummy_jql or not self.dummy_jql.strip():
            msg = "Placeholder filters require a JQL query"
            raise ValueError(msg)


@dataclass(slots=True)
class AppConfig:
    """Top level configuration threaded through the CLI commands."""

    jira: JiraConfig
    restore: RestoreConfig = field(default_factory=RestoreConfig)


def _load_yaml(path: Path) -> Mapping[str, object]:
    import yaml

    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle)
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        msg = "Configuration file must contain a mapping"
        raise ValueError(msg)
    return data


def config_from_mapping(data: Mapping[str, object], overrides: Mapping[str, object] | None = None) -> AppConfig:
    """Build an :class:`AppConfig` from parsed YAML plus optional CLI overrides.

    ``overrides`` uses flat keys (``host``, ``existence_policy`` ...) and skips
    ``None`` values so unset command line flags keep the file values.
    """

    jira_raw = data.get("jira", {})
    if not isinstance(jira_raw, Mapping):
        msg = "Configuration key 'jira' must be a mapping"
        raise ValueError(msg)
    restore_raw = data.get("restore", {})
    if not isinstance(restore_raw, Mapping):
        msg = "Configuration key 'restore' must be a mapping"
        raise ValueError(msg)

    jira = dict(jira_raw)
    restore = dict(restore_raw)
    for key, value in (overrides or {}).items():
        if value is None:
            continue
        if key in JiraConfig.__dataclass_fields__:
            jira[key] = value
        elif key in RestoreConfig.__dataclass_fields__:
            restore[key] = value
        else:
            msg = f"Unknown configuration override {key!r}"
            raise ValueError(msg)

    ca_bundle = jira.get("ca_bundle")
    jira_config = JiraConfig(
        host=str(jira["host"]) if jira.get("host") else None,
        scheme=str(jira.get("scheme", "https")),
        user=str(jira["user"]) if jira.get("user") else None,
        token=str(jira["token"]) if jira.get("token") else None,
        host_env=_clean_env_name(jira.get("host_env"), "JIRA_HOST"),
        user_env=_clean_env_name(jira.get("user_env"), "JIRA_USER"),
        token_env=_clean_env_name(jira.get("token_env"), "JIRA_API_TOKEN"),
        page_size=int(jira.get("page_size", 50)),
        timeout_s=float(jira.get("timeout_s", 30.0)),
        ca_bundle=ca_bundle if isinstance(ca_bundle, (str, bool)) else None,
        ca_bundle_env=_clean_env_name(jira.get("ca_bundle_env"), "JIRA_CA_BUNDLE"),
    )
    restore_config = RestoreConfig(
        existence_policy=str(restore.get("existence_policy", "exactly-one")),
        dedupe_dependencies=_parse_bool(restore.get("dedupe_dependencies", False)),
        dummy_jql=str(restore.get("dummy_jql", DEFAULT_DUMMY_JQL)),
        pause_between_filters=_parse_bool(restore.get("pause_between_filters", False)),
        pause_between_actions=_parse_bool(restore.get("pause_between_actions", False)),
    )
    return AppConfig(jira=jira_config, restore=restore_config)


def load_config(path: Path | str | None = None, overrides: Mapping[str, object] | None = None) -> AppConfig:
    """Load configuration from an optional YAML file and apply CLI overrides."""

    data: Mapping[str, object] = {}
    if path is not None:
        data = _load_yaml(Path(path))
    return config_from_mapping(data, overrides)


__all__ = [
    "AppConfig",
    "DEFAULT_DUMMY_JQL",
    "EXISTENCE_POLICIES",
    "JiraConfig",
    "RestoreConfig",
    "config_from_mapping",
    "load_config",
]
