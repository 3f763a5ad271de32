"""Wire-format streams."""

from .stream import StreamFormatError, StreamInput, StreamOutput

__all__ = ["StreamFormatError", "StreamInput", "StreamOutput"]
