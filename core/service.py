import threading
import time

from core.errors import DecodeError
from internal.logging import get_logger


class IdService:
    """Codec front for the HTTP layer: counters, logging and audit trail.

    The codec stays pure; everything observable about a request happens here.
    """

    def __init__(self, codec, audit_log=None):
        self.codec = codec
        self.audit_log = audit_log
        self._lock = threading.Lock()
        self._log = get_logger()
        self.started_at = time.time()
        self.generated = 0
        self.decoded = 0
        self.failed = 0

    @property
    def uptime(self):
        return time.time() - self.started_at

    def _audit(self, kind, data):
        if self.audit_log is not None:
            self.audit_log.try_log(kind, data)

    def generate(self, count=1):
        ids = self.codec.generate_many(count)
        with self._lock:
            self.generated += len(ids)
        self._log.debug("ids generated", count=len(ids))
        self._audit("generate", {"ids": ids})
        return ids

    def decode(self, nfuid):
        try:
            record = self.codec.decode(nfuid)
        except DecodeError as exc:
            with self._lock:
                self.failed += 1
            self._log.warn("decode failed", error=exc.message, error_id=exc.error_id, nfuid=nfuid)
            self._audit("decode_failed", {"nfuid": nfuid, "error_id": exc.error_id})
            raise
        with self._lock:
            self.decoded += 1
        self._audit("decode", {"nfuid": nfuid, "timestamp": record.timestamp})
        return record

    def get_stats(self):
        with self._lock:
            counters = {"generated": self.generated, "decoded": self.decoded, "failed": self.failed}
        codec = self.codec
        return {
            **counters,
            "uptime_s": round(self.uptime, 1),
            "codec": {
                "radix": codec.radix,
                "length": codec.length,
                "timestamp_length": codec.timestamp_length,
                "entropy_length": codec.entropy_length,
                "timestamp_unit": codec.timestamp_unit,
                "arithmetic": codec.arithmetic,
            },
        }
