"""Run settings.

Explicit values win, then ``TREEMATCH_BENCH_*`` environment variables, then
the defaults below.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import Any, Callable, Mapping

from treematch_bench.errors import ConfigurationError

DEFAULT_TIMEOUT = 5.0
DEFAULT_REPEATS = 1

ENV_TIMEOUT = "TREEMATCH_BENCH_TIMEOUT"
ENV_REPEATS = "TREEMATCH_BENCH_REPEATS"
ENV_MEMORY_LIMIT = "TREEMATCH_BENCH_MEMORY_LIMIT"


def _from_env(
    environ: Mapping[str, str], key: str, convert: Callable[[str], Any], default: Any,
) -> Any:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return convert(raw)
    except ValueError:
        raise ConfigurationError(f"Invalid value for {key}: {raw!r}")


@dataclass(frozen=True)
class BenchConfig:
    """Settings for one benchmark run.

    Args:
        timeout: Wall-clock budget per match, in seconds.
        repeats: Match measurements per (pair, configuration). Only the first
            is authoritative; each one runs in a fresh worker.
        memory_limit_mb: Address-space ceiling applied inside each match
            worker. None leaves the worker unlimited.
        progress: Show the progress bar (only on a terminal).
        verbose: Print per-pair parse timings.
        resume: Append to an existing report, skipping rows already present.
    """

    timeout: float = DEFAULT_TIMEOUT
    repeats: int = DEFAULT_REPEATS
    memory_limit_mb: int | None = None
    progress: bool = True
    verbose: bool = False
    resume: bool = False

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        if self.repeats < 1:
            raise ConfigurationError(f"repeats must be at least 1, got {self.repeats}")
        if self.memory_limit_mb is not None:
            if self.memory_limit_mb <= 0:
                raise ConfigurationError(
                    f"memory limit must be positive, got {self.memory_limit_mb}"
                )
            if sys.platform == "win32":
                raise ConfigurationError("memory limits are not supported on Windows")

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        timeout: float | None = None,
        repeats: int | None = None,
        memory_limit_mb: int | None = None,
        **kwargs: Any,
    ) -> BenchConfig:
        """Build a config, filling unset values from the environment."""
        if environ is None:
            environ = os.environ
        if timeout is None:
            timeout = _from_env(environ, ENV_TIMEOUT, float, DEFAULT_TIMEOUT)
        if repeats is None:
            repeats = _from_env(environ, ENV_REPEATS, int, DEFAULT_REPEATS)
        if memory_limit_mb is None:
            memory_limit_mb = _from_env(environ, ENV_MEMORY_LIMIT, int, None)
        return cls(timeout=timeout, repeats=repeats, memory_limit_mb=memory_limit_mb, **kwargs)
