"""Request parsing for the common Generic Open Web Services (OWS) protocol bits."""

from __future__ import annotations

from dataclasses import dataclass

from django.http import QueryDict

from mapmlserver.exceptions import OperationNotSupported

from .kvp import KVPRequest

__all__ = (
    "BaseOwsRequest",
    "register",
    "resolve_kvp_parser_class",
    "parse_get_request",
)

_kvp_parsers: dict[str, type[BaseOwsRequest]] = {}


def register(request_name: str):
    """Decorator to register the class that parses a ``REQUEST=...`` type."""

    def _dec(cls: type[BaseOwsRequest]):
        _kvp_parsers[request_name.upper()] = cls
        cls.request_name = request_name
        return cls

    return _dec


@dataclass
class BaseOwsRequest:
    """Base request data for all request types of the OWS standards."""

    #: The name of the operation, assigned by :func:`register`.
    request_name = None

    # dataclass limitation: once defaults are added,
    # subclasses can't have required parameters anymore.
    service: str
    version: str | None

    @classmethod
    def from_kvp_request(cls, kvp: KVPRequest):
        """Initialize from an KVP GET request."""
        return cls(**cls.base_kvp_init_parameters(kvp))

    @classmethod
    def base_kvp_init_parameters(cls, kvp: KVPRequest) -> dict:
        """Parse the common Key-Value-Pair format (GET request parameters).
        This parses the syntax::

            ?SERVICE=WMS&VERSION=1.3.0
        """
        return dict(
            service=kvp.get_str("SERVICE").upper(),
            version=kvp.get_str("VERSION", default=None),
        )


def resolve_kvp_parser_class(kvp: KVPRequest) -> type[BaseOwsRequest]:
    """Find the appropriate class to parse the KVP GET request data."""
    request = kvp.get_str("request")
    try:
        return _kvp_parsers[request.upper()]
    except KeyError:
        allowed = ", ".join(cls.request_name for cls in _kvp_parsers.values())
        raise OperationNotSupported(
            f"'{request}' is not implemented, supported are: {allowed}.",
            locator="request",
        ) from None


def parse_get_request(query_string: str | dict[str, str]) -> BaseOwsRequest:
    """Parse the KVP GET request format into the internal request objects.
    Most code calls the resolver internally, but this variation is easier for unit testing.
    """
    if isinstance(query_string, str):
        query_string = QueryDict(query_string.lstrip("?"))

    kvp = KVPRequest(query_string)
    request_cls = resolve_kvp_parser_class(kvp)
    return request_cls.from_kvp_request(kvp)
