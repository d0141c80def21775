import json
from pathlib import Path

from core.codec import (
    DEFAULT_ALPHABET,
    DEFAULT_ENTROPY_LENGTH,
    DEFAULT_TIMESTAMP_LENGTH,
    DEFAULT_TIMESTAMP_UNIT,
)

_DEFAULT_CONFIG = Path(__file__).parent / "config.json"


class CodecConfig:
    __slots__ = ("base_alphabet", "timestamp_length", "entropy_length", "timestamp_unit", "arithmetic")

    def __init__(self, base_alphabet=DEFAULT_ALPHABET, timestamp_length=DEFAULT_TIMESTAMP_LENGTH,
                 entropy_length=DEFAULT_ENTROPY_LENGTH, timestamp_unit=DEFAULT_TIMESTAMP_UNIT,
                 arithmetic="native"):
        self.base_alphabet = base_alphabet
        self.timestamp_length = timestamp_length
        self.entropy_length = entropy_length
        self.timestamp_unit = timestamp_unit
        self.arithmetic = arithmetic


class ServerConfig:
    __slots__ = ("host", "port")

    def __init__(self, host="127.0.0.1", port=8080):
        self.host = host
        self.port = port


class LoggingConfig:
    __slots__ = ("level", "file", "crash_file")

    def __init__(self, level="INFO", file="logs/nfuid.log", crash_file="logs/crash.log"):
        self.level = level
        self.file = file
        self.crash_file = crash_file


class Config:
    __slots__ = ("codec", "server", "logging")

    def __init__(self, codec=None, server=None, logging=None):
        self.codec = codec or CodecConfig()
        self.server = server or ServerConfig()
        self.logging = logging or LoggingConfig()

    @classmethod
    def from_dict(cls, d):
        return cls(
            CodecConfig(**d.get("codec", {})),
            ServerConfig(**d.get("server", {})),
            LoggingConfig(**d.get("logging", {})),
        )


def load_config(path=None):
    config_path = Path(path) if path else _DEFAULT_CONFIG

    if not config_path.exists():
        return Config()

    with open(config_path) as file:
        return Config.from_dict(json.load(file))
