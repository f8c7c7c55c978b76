from __future__ import annotations

import logging
import typing
from collections.abc import Iterator
from itertools import chain

from django.conf import settings
from django.http import HttpResponse, StreamingHttpResponse
from django.http.response import HttpResponseBase

from .utils import tag_escape

logger = logging.getLogger(__name__)

if typing.TYPE_CHECKING:
    from mapmlserver.operations.base import MapMLOperation


class OutputRenderer:
    """Base class for the MapML documents that an operation returns."""

    #: The content type of all MapML documents.
    content_type = "text/mapml"

    def __init__(self, operation: MapMLOperation):
        self.operation = operation

    def get_response(self) -> HttpResponseBase:
        """Wrap the rendered document in a regular or streaming response."""
        content = self.render_stream()
        if isinstance(content, (str, bytes)):
            return HttpResponse(content, content_type=self.content_type)

        # The first chunk is rendered before the response is returned,
        # so a MapMLException there still becomes an exception report from MapMLView.
        try:
            first = next(content)
        except StopIteration:
            content = iter(())
        else:
            content = chain([first], self._trap_exceptions(content))

        return StreamingHttpResponse(content, content_type=self.content_type)

    def _trap_exceptions(self, stream: Iterator[str]):
        """Report errors that happen after the HTTP status was sent."""
        try:
            yield from stream
        except Exception as e:
            logger.exception("Rendering %s output failed", self.content_type)
            yield self.render_exception(e)
            raise

    def render_exception(self, exception: Exception) -> str:
        """Write the error as XML comment, that's all a half-written document allows.
        Details are only shown in debug mode.
        """
        if settings.DEBUG:
            message = f"{exception.__class__.__name__}: {exception}"
        else:
            message = f"{exception.__class__.__name__} during rendering!"
        # "--" is not allowed inside comments.
        return f"<!-- {tag_escape(message).replace('--', '- -')} -->\n"

    def render_stream(self) -> str | Iterator[str]:
        """Render the document.

        This either returns the whole document as ``str``, or a generator
        of text chunks, which is sent as ``StreamingHttpResponse``.
        """
        raise NotImplementedError()
