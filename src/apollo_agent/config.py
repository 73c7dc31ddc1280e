"""YAML configuration loader for the Apollo agent."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Sequence

import yaml

from apollo_client.types import Opts


@dataclass
class ApolloSection:
    url: str
    app_id: str
    cluster: str = "default"
    label: str = ""
    namespaces: Sequence[str] = ("application",)
    poll_interval_ms: int = 1000
    connect_timeout_ms: int = 500
    read_timeout_ms: int = 120000
    write_timeout_ms: int = 3000

    def to_opts(self) -> Opts:
        return Opts(
            cluster_name=self.cluster,
            label=self.label,
            namespaces=tuple(self.namespaces),
            connect_timeout_ms=self.connect_timeout_ms,
            read_timeout_ms=self.read_timeout_ms,
            write_timeout_ms=self.write_timeout_ms,
        )


@dataclass
class ListenerConfig:
    type: str
    options: dict = field(default_factory=dict)


@dataclass
class AgentConfig:
    apollo: ApolloSection
    listeners: Sequence[ListenerConfig] = field(default_factory=list)


def _parse_namespaces(value) -> List[str]:
    if value is None:
        return ["application"]
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise ValueError("'namespaces' must be a list of names")
    return [str(ns) for ns in value]


def _parse_apollo(section: dict) -> ApolloSection:
    for key in ("url", "app_id"):
        if not section.get(key):
            raise ValueError(f"Configuration missing 'apollo.{key}'")

    timeouts = section.get("timeouts", {}) or {}
    if not isinstance(timeouts, dict):
        raise ValueError("'apollo.timeouts' must be a mapping if provided")

    return ApolloSection(
        url=str(section["url"]).rstrip("/"),
        app_id=str(section["app_id"]),
        cluster=str(section.get("cluster", "default")),
        label=str(section.get("label", "") or ""),
        namespaces=_parse_namespaces(section.get("namespaces")),
        poll_interval_ms=int(section.get("poll_interval_ms", section.get("interval_ms", 1000))),
        connect_timeout_ms=int(timeouts.get("connect_ms", 500)),
        read_timeout_ms=int(timeouts.get("read_ms", 120000)),
        write_timeout_ms=int(timeouts.get("write_ms", 3000)),
    )


def _parse_listeners(entries: Iterable[dict]) -> List[ListenerConfig]:
    listeners: List[ListenerConfig] = []
    for entry in entries:
        options = entry.get("options", {})
        if not isinstance(options, dict):
            raise ValueError("listener 'options' must be a mapping if provided")
        listeners.append(ListenerConfig(type=str(entry["type"]), options=options))
    return listeners


def load_config(path: Path) -> AgentConfig:
    data = yaml.safe_load(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError("Agent configuration must be a mapping")

    apollo_section = data.get("apollo")
    if apollo_section is None:
        raise ValueError("Configuration missing 'apollo' section")
    if not isinstance(apollo_section, dict):
        raise ValueError("'apollo' section must be a mapping")
    apollo = _parse_apollo(apollo_section)

    listeners_section = data.get("listeners", [])
    if not isinstance(listeners_section, list):
        raise ValueError("'listeners' section must be a list")
    listeners = _parse_listeners(listeners_section)

    return AgentConfig(apollo=apollo, listeners=listeners)
