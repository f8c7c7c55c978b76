"""The view layer parses the request, and dispatches it to an operation."""

from __future__ import annotations

import logging
from urllib.parse import unquote_plus

from django.core.exceptions import ImproperlyConfigured
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from mapmlserver.exceptions import MapMLException, OperationNotSupported
from mapmlserver.layers import LayerDefinition, MapDefinition
from mapmlserver.mapfile import load_map_file
from mapmlserver.operations import base, mapml
from mapmlserver.output import QueryResult
from mapmlserver.parsers.mapml import GetFeatureInfo
from mapmlserver.parsers.ows import KVPRequest
from mapmlserver.parsers.ows.requests import resolve_kvp_parser_class

logger = logging.getLogger(__name__)

__all__ = ("MapMLView",)


class MapMLView(View):
    """A view that serves the MapML documents of a map.

    This view can be used by subclassing it, and defining ``map_definition``,
    ``map_file`` or overriding :meth:`get_map_definition`.

    Requests for other services (e.g. the regular ``WMS`` ``GetMap``) are passed
    to the :attr:`fallback_view` when it's configured, so this view can be placed
    in front of an existing map server.
    """

    #: The map that this view exposes.
    map_definition: MapDefinition | None = None

    #: Alternatively, a JSON file that defines the map.
    map_file: str | None = None

    #: Internal configuration of all available RPC calls.
    accept_operations = {
        "WMS": {
            "GetMapML": mapml.GetMapMLOperation,
            "GetFeatureInfo": mapml.GetFeatureInfoOperation,
        },
        "MAPMLTILE": {
            "GetMapML": mapml.GetMapMLOperation,
        },
    }

    #: Allow to set a default service, so the SERVICE parameter can be omitted.
    default_service = None

    #: The service to use when SERVICE is omitted for a REQUEST=GetMapML.
    vendor_service = "MAPMLTILE"

    #: The view to handle requests that are not for this server.
    fallback_view = None

    @csrf_exempt
    def dispatch(self, request, *args, **kwargs):
        """Render proper XML errors for exceptions on all request types."""
        try:
            return super().dispatch(request, *args, **kwargs)
        except Exception as e:
            response = self.handle_exception(e)
            if response is not None:
                return response
            raise

    def handle_exception(self, exc):
        """Transform an exception into an XML response.
        When nothing is returned, the exception is raised instead.
        """
        if isinstance(exc, MapMLException):
            return exc.as_response()
        else:
            return None

    def get(self, request, *args, **kwargs):
        """Entry point to handle HTTP GET requests.

        All query parameters are handled as case-insensitive.
        """
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Parsing GET parameters:\n%s",
                unquote_plus(request.META["QUERY_STRING"].replace("&", "\n")).rstrip(),
            )

        self.kvp = kvp = KVPRequest(request.GET)
        response = self.dispatch_service(kvp)
        if response is not None:
            return response

        # Not a request for this server.
        if self.fallback_view is not None:
            return self.fallback_view(request, *args, **kwargs)

        service = kvp.get_str("SERVICE", default=None)
        operation = kvp.get_str("REQUEST", default=None)
        raise OperationNotSupported(
            f"Unsupported request: SERVICE={service or ''}, REQUEST={operation or ''}.",
            locator="request",
        )

    def dispatch_service(self, kvp: KVPRequest):
        """Find the operation that handles the request, and call it.

        Returns ``None`` when the request is not meant for this server.
        """
        # An empty SERVICE= is not the same as an omitted one.
        service = kvp.get_str("SERVICE", default=self.default_service, allow_empty=True)
        operation = kvp.get_str("REQUEST", default=None)
        if service is None:
            # A GetMapML request without service is the vendor-specific request.
            if operation is None or operation.upper() != "GETMAPML":
                return None
            service = self.vendor_service

        service = service.upper()
        if service not in self.accept_operations:
            return None

        operation_cls = self.get_operation_class(service, operation)
        if operation_cls is None:
            return None

        # The parsers read the service from the request.
        kvp.params["SERVICE"] = service

        request_cls = operation_cls.parser_class or resolve_kvp_parser_class(kvp)
        ows_request = request_cls.from_kvp_request(kvp)
        return self.call_operation(operation_cls, ows_request)

    def get_operation_class(
        self, service: str, operation: str | None
    ) -> type[base.MapMLOperation] | None:
        """Resolve the method that the client wants to call.

        Unknown WMS requests are not for this server, but a ``MAPMLTILE``
        request can't be handled by anything else.
        """
        if not self.accept_operations:
            raise ImproperlyConfigured("View has no operations")

        operations = self.accept_operations[service]
        uc_methods = {name.upper(): method for name, method in operations.items()}
        try:
            return uc_methods[(operation or "").upper()]
        except KeyError:
            if service == "MAPMLTILE":
                raise OperationNotSupported(
                    "Incomplete or unsupported MAPMLTILE request", locator="request"
                ) from None
            return None

    def call_operation(self, operation_cls: type[base.MapMLOperation], ows_request):
        """Call the resolved method."""
        self.ows_request = ows_request
        operation = operation_cls(self, ows_request)
        operation.validate_request(ows_request)
        return operation.process_request(ows_request)

    def get_map_definition(self) -> MapDefinition:
        """Provide the map that is exposed. This can be overwritten for dynamic maps."""
        if self.map_definition is not None:
            return self.map_definition
        elif self.map_file:
            return load_map_file(self.map_file)
        else:
            raise ImproperlyConfigured(
                f"{self.__class__.__name__} should define 'map_definition' or 'map_file'."
            )

    def query_features(
        self, layers: list[LayerDefinition], ows_request: GetFeatureInfo
    ) -> list[QueryResult]:
        """Find the features for a GetFeatureInfo request.

        Override this method to connect a data source.
        It receives the layers that are activated by ``QUERY_LAYERS``, and the
        request that holds the clicked position within the ``BBOX``.
        """
        return []

    @property
    def server_url(self):
        """Expose the server URLs for all operations to read."""
        return self.request.build_absolute_uri(self.request.path)
