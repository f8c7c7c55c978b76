"""Output buffering, to write the query results in chunks."""

from __future__ import annotations

import io


class StringBuffer:
    """Fast buffer to write text in chunks.
    This avoids performing a yield for every single line of the output.
    """

    def __init__(self, chunk_size=8192):
        self.data = io.StringIO()
        self.chunk_size = chunk_size

    def is_full(self):
        # Calling data.tell() is faster than doing self.size += len(value)
        return self.data.tell() >= self.chunk_size

    def write(self, value: str):
        if value is None:
            return
        self.data.write(value)

    def flush(self) -> str:
        """Empty the buffer and return it."""
        data = self.data.getvalue()
        self.data.seek(0)
        self.data.truncate(0)
        return data

    def __str__(self):
        return self.data.getvalue()
