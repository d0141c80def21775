"""Random byte sources.

A source is any object with ``fill(buffer)`` that overwrites a bytearray in
place. The codec only ever asks for whole bytes.
"""

import secrets


class SystemRandomSource:
    """CSPRNG-backed source. Safe to share between threads."""

    def fill(self, buffer):
        buffer[:] = secrets.token_bytes(len(buffer))
        return buffer


def draw(source, size):
    """Return ``size`` fresh bytes from ``source``."""
    buffer = bytearray(size)
    source.fill(buffer)
    return bytes(buffer)
