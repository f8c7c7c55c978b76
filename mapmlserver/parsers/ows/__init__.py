"""Generic Open Web Services (OWS) protocol bits to handle incoming requests.

These translate the request parameters into the internal objects
that the rest of the controller/view logic can use.
"""

from .kvp import KVPRequest
from .requests import BaseOwsRequest, parse_get_request

__all__ = (
    "KVPRequest",
    "BaseOwsRequest",
    "parse_get_request",
)
