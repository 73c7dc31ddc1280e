"""oslo.config options for services that embed the Apollo client.

Services already configured through oslo.config can register the ``apollo``
group and build :class:`~apollo_client.types.Opts` straight from their
config files instead of maintaining a separate YAML document.
"""

from oslo_config import cfg

from .client import make_apollo_client
from .types import Opts

GROUP_NAME = 'apollo'

apollo_group = cfg.OptGroup(
    name=GROUP_NAME,
    title='Apollo configuration center client options')

apollo_opts = [
    cfg.StrOpt('url',
               help='Base URL of the Apollo config service, e.g. '
                    'http://apollo-configservice:8080. Only plain http '
                    'is supported and the URL must not end with "/".'),
    cfg.StrOpt('app_id',
               help='Application ID registered in Apollo.'),
    cfg.StrOpt('cluster',
               default='default',
               help='Apollo cluster name.'),
    cfg.StrOpt('label',
               default='',
               help='Optional grayscale release label.'),
    cfg.ListOpt('namespaces',
                default=['application'],
                help='Namespaces to load and watch.'),
    cfg.IntOpt('poll_interval_ms',
               default=1000,
               help='Delay between long-poll cycles in milliseconds. '
                    'Zero or a negative value disables polling.'),
    cfg.IntOpt('connect_timeout_ms',
               default=500,
               min=1,
               help='Timeout for establishing a connection.'),
    cfg.IntOpt('read_timeout_ms',
               default=120000,
               min=60001,
               help='Timeout for reading a response. Must exceed 60 seconds '
                    'because the server holds long-poll requests that long.'),
    cfg.IntOpt('write_timeout_ms',
               default=3000,
               min=1,
               help='Timeout for sending a request.'),
]


def register_opts(conf=cfg.CONF):
    """Register the ``apollo`` option group on ``conf``."""
    conf.register_group(apollo_group)
    conf.register_opts(apollo_opts, group=apollo_group)


def list_opts():
    """Entry point for oslo-config-generator."""
    return [(apollo_group, apollo_opts)]


def build_opts(conf=cfg.CONF):
    """Translate the registered ``apollo`` group into client ``Opts``."""
    group = conf[GROUP_NAME]
    return Opts(
        cluster_name=group.cluster,
        label=group.label or '',
        namespaces=tuple(group.namespaces or ()),
        connect_timeout_ms=group.connect_timeout_ms,
        read_timeout_ms=group.read_timeout_ms,
        write_timeout_ms=group.write_timeout_ms,
    )


def create_client(conf=cfg.CONF, start=True, logger=None, transport=None):
    """Build an :class:`ApolloClient` from the ``apollo`` group.

    The client is started with ``poll_interval_ms`` unless ``start`` is
    false.  Raises ``ClientInitError`` when ``url`` or ``app_id`` is unset or
    the initial load fails.
    """
    group = conf[GROUP_NAME]
    client = make_apollo_client((group.url or '').rstrip('/'),
                                group.app_id or '',
                                build_opts(conf),
                                logger,
                                transport=transport)
    if start:
        client.start(group.poll_interval_ms)
    return client
