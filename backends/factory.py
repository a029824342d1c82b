"""
Backend Factory

Builds a blog backend by interface name, wiring it to the default
transports unless the caller supplies its own.

Usage:
    blog = create_blog("metaweblog")
    blog.connect("created_post", on_created)
    blog.create_post(post)
    blog.transport.dispatch()
"""

from typing import Optional

from config import settings
from backends.base import Blog, build_user_agent
from backends.blogger1 import Blogger1
from backends.gdata import GData
from backends.livejournal import LiveJournal
from backends.metaweblog import MetaWeblog
from backends.movabletype import MovableType
from backends.protocols import FeedLoader, HttpTransport, RpcTransport
from backends.transport import FeedparserLoader, RequestsHttpTransport, XmlRpcTransport
from data.models import BlogConfig
from utils.exceptions import UnknownInterfaceError
from utils.logger import get_logger

logger = get_logger(__name__)

XMLRPC_BACKENDS = {
    "blogger1": Blogger1,
    "metaweblog": MetaWeblog,
    "movabletype": MovableType,
    "livejournal": LiveJournal,
}


def create_blog(interface: Optional[str] = None, config: Optional[BlogConfig] = None,
                rpc_transport: Optional[RpcTransport] = None,
                feed_loader: Optional[FeedLoader] = None,
                http_transport: Optional[HttpTransport] = None,
                validate: bool = False) -> Blog:
    """
    Create a blog backend.

    Args:
        interface: One of ``settings.SUPPORTED_INTERFACES``; defaults to
            ``settings.BLOG_INTERFACE``.
        config: Connection settings; defaults to ``BlogConfig.from_settings()``.
        rpc_transport: Transport for the XML-RPC backends.
        feed_loader: Feed loader for GData.
        http_transport: HTTP transport for GData.
        validate: Run ``settings.validate_settings()`` first.

    Returns:
        Blog: The backend, ready to have handlers connected.

    Raises:
        UnknownInterfaceError: If the interface name matches no backend.
        ConfigurationError: If ``validate`` is set and the settings are invalid.
    """
    if validate:
        settings.validate_settings()

    name = (interface or settings.BLOG_INTERFACE or "").strip().lower()
    if name not in settings.SUPPORTED_INTERFACES:
        raise UnknownInterfaceError(
            f"Unknown blog interface '{name}'. "
            f"Supported: {', '.join(settings.SUPPORTED_INTERFACES)}")

    config = config or BlogConfig.from_settings()
    user_agent = build_user_agent(config)

    if name == "gdata":
        blog = GData(config,
                     feed_loader or FeedparserLoader(user_agent),
                     http_transport or RequestsHttpTransport())
    else:
        transport = rpc_transport or XmlRpcTransport(config.url, user_agent)
        blog = XMLRPC_BACKENDS[name](config, transport)

    logger.info(f"Created {blog.interface_name} backend for {config.url}")
    return blog
