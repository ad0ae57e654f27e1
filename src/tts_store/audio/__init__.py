"""
Audio Payload Handling.

    - stream.py: Draining provider audio streams into a single buffer
"""
from .stream import drain_stream

__all__ = ["drain_stream"]
