from __future__ import annotations

from pathlib import Path

import pytest

from jira_filter_restore.config import JiraConfig, RestoreConfig, load_config


def test_load_config_from_yaml_with_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JIRA_API_TOKEN", raising=False)
    path = tmp_path / "restore.yml"
    path.write_text(
        "jira:\n"
        "  host: example.atlassian.net\n"
        "  user: bot@example.com\n"
        "  page_size: 25\n"
        "restore:\n"
        "  existence_policy: any\n"
        "  pause_between_actions: yes\n",
        encoding="utf-8",
    )
    config = load_config(path, overrides={"scheme": "http", "dedupe_dependencies": True, "host": None})

    assert config.jira.base_url == "http://example.atlassian.net"
    assert config.jira.page_size == 25
    assert config.restore.existence_policy == "any"
    assert config.restore.pause_between_actions is True
    assert config.restore.dedupe_dependencies is True
    assert config.restore.dummy_jql == "order by created asc"


def test_host_falls_back_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JIRA_HOST", "https://team.atlassian.net/")
    config = JiraConfig()
    assert config.base_url == "https://team.atlassian.net"


def test_missing_host_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JIRA_HOST", raising=False)
    with pytest.raises(ValueError, match="host"):
        JiraConfig()


def test_token_prompted_when_not_configured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("JIRA_API_TOKEN", raising=False)
    config = JiraConfig(host="example.com", user="bot")
    prompts: list[str] = []

    def prompt(text: str) -> str:
        prompts.append(text)
        return " s3cret "

    assert config.get_token(prompt) == "s3cret"
    assert prompts == ["API token for bot: "]


def test_token_read_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("JIRA_API_TOKEN", "from-env")
    config = JiraConfig(host="example.com", user="bot")
    assert config.get_token(lambda _: pytest.fail("should not prompt")) == "from-env"


def test_restore_config_validates_policy() -> None:
    with pytest.raises(ValueError):
        RestoreConfig(existence_policy="first")


def test_unknown_override_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown configuration override"):
        load_config(overrides={"host": "example.com", "colour": "blue"})
