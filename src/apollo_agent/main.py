"""Entry point for the standalone Apollo watcher agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event

from apollo_client import ApolloError, make_apollo_client

from .config import AgentConfig, ApolloSection, load_config
from .listeners import create_log_listener
from .listeners.log import LEVELS
from .registry import ListenerRegistry

LOG = logging.getLogger(__name__)

LISTENER_FACTORIES = {
    "log": create_log_listener,
}


def _setup_logging(verbose: bool, level_name: str | None = None) -> None:
    if level_name:
        level = LEVELS[level_name]
    else:
        level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def build_registry(config: AgentConfig) -> ListenerRegistry:
    registry = ListenerRegistry()
    for index, listener_cfg in enumerate(config.listeners):
        factory = LISTENER_FACTORIES.get(listener_cfg.type)
        if factory is None:
            raise ValueError(f"unsupported listener type '{listener_cfg.type}'")
        registry.register(f"{listener_cfg.type}-{index}", factory(listener_cfg.options))
    if not config.listeners:
        registry.register("log", create_log_listener({}))
    return registry


def _override(config: AgentConfig, args: argparse.Namespace) -> None:
    apollo = config.apollo
    if args.url:
        apollo.url = args.url.rstrip("/")
    if args.app_id:
        apollo.app_id = args.app_id
    if args.cluster:
        apollo.cluster = args.cluster
    if args.namespaces:
        apollo.namespaces = list(args.namespaces)
    if args.interval is not None:
        apollo.poll_interval_ms = args.interval


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Watch Apollo configuration namespaces")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to the agent YAML configuration file",
    )
    parser.add_argument("-u", "--url", help="Apollo server URL (overrides the config file)")
    parser.add_argument("-a", "--app-id", dest="app_id", help="Apollo application ID")
    parser.add_argument("-c", "--cluster", help="Apollo cluster name")
    parser.add_argument(
        "-n",
        "--namespaces",
        nargs="+",
        help="Namespaces to watch",
    )
    parser.add_argument(
        "-t",
        "--interval",
        type=int,
        help="Polling interval in milliseconds",
    )
    parser.add_argument(
        "--log-level",
        choices=sorted(LEVELS),
        help="Log level ceiling",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args(argv)
    _setup_logging(args.verbose, args.log_level)

    if args.config is not None:
        config = load_config(args.config)
    elif args.url and args.app_id:
        config = AgentConfig(apollo=ApolloSection(url=args.url, app_id=args.app_id))
    else:
        parser.error("either --config or both --url and --app-id are required")
    _override(config, args)
    apollo = config.apollo

    LOG.info("Apollo server: %s", apollo.url)
    LOG.info("App ID: %s, cluster: %s", apollo.app_id, apollo.cluster)
    LOG.info("Namespaces: %s", ", ".join(apollo.namespaces))
    if 0 < apollo.poll_interval_ms < 1000:
        LOG.warning(
            "poll interval %d ms is below 1000 ms; this may put high load on the server",
            apollo.poll_interval_ms,
        )

    registry = build_registry(config)

    try:
        client = make_apollo_client(apollo.url, apollo.app_id, apollo.to_opts())
    except ApolloError as exc:
        LOG.error("failed to initialise Apollo client: %s", exc)
        return 1

    client.set_notifications_listener(registry)

    for namespace in client.namespaces:
        configs = client.get_configures(namespace)
        LOG.info("configuration for namespace '%s' (%d keys)", namespace, len(configs))
        for key, value in sorted(configs.items()):
            LOG.info("  %s: %s", key, value)

    client.start(apollo.poll_interval_ms)
    if not client.is_running:
        LOG.warning("long polling disabled; configuration will not be refreshed")

    stop_event = Event()

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("received signal %s, shutting down", signum)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    client.stop()
    LOG.info("apollo agent stopped")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
