"""Leveled, optionally colored logging to stderr."""

import sys
from dataclasses import dataclass, field

from .config import LogConfig

COLORS = {
    "INFO": "\033[36m",
    "OK": "\033[32m",
    "WARN": "\033[33m",
    "ERR": "\033[31m",
    "CMD": "\033[34m",
}
RESET = "\033[0m"


@dataclass
class Console:
    config: LogConfig = field(default_factory=LogConfig)
    stream: object = None

    def log(self, msg: str, level: str = "INFO"):
        stream = self.stream if self.stream is not None else sys.stderr
        if self.config.color:
            c = COLORS.get(level, "")
            print(f"{c}[{level}]{RESET} {msg}", file=stream)
        else:
            print(f"[{level}] {msg}", file=stream)

    def info(self, msg: str):
        self.log(msg, "INFO")

    def ok(self, msg: str):
        self.log(msg, "OK")

    def warn(self, msg: str):
        self.log(msg, "WARN")

    def error(self, msg: str):
        self.log(msg, "ERR")

    def command(self, cmd: list[str]):
        self.log(f"$ {' '.join(cmd)}", "CMD")
