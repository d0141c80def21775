"""
Tracking IDs for errors and crash records.

Tracking IDs are ordinary NFUIDs from a process-wide codec with the default
layout, so decoding one recovers the millisecond it was issued.
"""

import threading

_generator = None
_generator_lock = threading.Lock()


def get_generator():
    """Process-wide default codec, created on first use."""
    global _generator
    if _generator is None:
        with _generator_lock:
            if _generator is None:
                # core.errors imports this module
                from core.codec import NFUID
                _generator = NFUID()
    return _generator


def generate_tracking_id():
    """Generate a 22-character tracking ID."""
    return get_generator().generate()
