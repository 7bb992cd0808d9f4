"""
Handlers package - Galaxy v3 request handling for hosted and proxy repositories.

Each repository owns one handler; the ASGI glue matches a route, builds a
HandlerRequest and runs it through ``dispatch``.
"""
from .base import HandlerRequest, HandlerResponse, RequestHandler, dispatch
from .hosted import HostedHandler
from .proxy import ProxyHandler

__all__ = [
    "HandlerRequest",
    "HandlerResponse",
    "RequestHandler",
    "dispatch",
    "HostedHandler",
    "ProxyHandler",
]
