import argparse
from pathlib import Path

import pytest

from apollo_agent.config import AgentConfig, ApolloSection, load_config
from apollo_agent.main import _override, build_registry, main


def test_load_config(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        """
apollo:
  url: http://apollo-configservice:8080/
  app_id: demo
  cluster: staging
  label: canary
  namespaces:
    - application
    - db
  poll_interval_ms: 2000
  timeouts:
    connect_ms: 250
    read_ms: 90000
listeners:
  - type: log
    options:
      level: debug
"""
    )

    cfg = load_config(config_path)

    assert cfg.apollo.url == "http://apollo-configservice:8080"
    assert cfg.apollo.app_id == "demo"
    assert cfg.apollo.cluster == "staging"
    assert cfg.apollo.label == "canary"
    assert cfg.apollo.namespaces == ["application", "db"]
    assert cfg.apollo.poll_interval_ms == 2000
    assert len(cfg.listeners) == 1
    assert cfg.listeners[0].type == "log"
    assert cfg.listeners[0].options == {"level": "debug"}

    opts = cfg.apollo.to_opts()
    assert opts.cluster_name == "staging"
    assert opts.namespaces == ("application", "db")
    assert opts.connect_timeout_ms == 250
    assert opts.read_timeout_ms == 90000
    assert opts.write_timeout_ms == 3000


def test_load_config_defaults(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("apollo:\n  url: http://apollo:8080\n  app_id: demo\n")

    cfg = load_config(config_path)

    assert cfg.apollo.cluster == "default"
    assert cfg.apollo.label == ""
    assert cfg.apollo.namespaces == ["application"]
    assert cfg.apollo.poll_interval_ms == 1000
    assert cfg.listeners == []


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "listeners: []\n",
        "apollo:\n  app_id: demo\n",
        "apollo:\n  url: http://apollo:8080\n",
        "apollo:\n  url: http://apollo:8080\n  app_id: demo\nlisteners: {}\n",
        "apollo:\n  url: http://apollo:8080\n  app_id: demo\nlisteners:\n  - type: log\n    options: [1]\n",
    ],
)
def test_load_config_rejects_invalid(tmp_path: Path, content):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(content)

    with pytest.raises(ValueError):
        load_config(config_path)


def test_build_registry_defaults_to_log_listener(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text("apollo:\n  url: http://apollo:8080\n  app_id: demo\n")

    registry = build_registry(load_config(config_path))

    assert registry.names() == ["log"]


def test_build_registry_rejects_unknown_listener(tmp_path: Path):
    config_path = tmp_path / "agent.yaml"
    config_path.write_text(
        "apollo:\n  url: http://apollo:8080\n  app_id: demo\nlisteners:\n  - type: webhook\n"
    )

    with pytest.raises(ValueError):
        build_registry(load_config(config_path))


def test_main_fails_for_https_url():
    assert main(["--url", "https://apollo:8443", "--app-id", "demo"]) == 1


def test_main_requires_connection_details():
    with pytest.raises(SystemExit):
        main([])


def test_cli_url_is_trimmed_like_config_file():
    config = AgentConfig(apollo=ApolloSection(url="http://apollo:8080", app_id="demo"))
    args = argparse.Namespace(
        url="http://apollo-cli:8080/", app_id=None, cluster=None, namespaces=None, interval=None
    )

    _override(config, args)

    assert config.apollo.url == "http://apollo-cli:8080"
