"""Isolated execution of a single match call.

Every match runs in a one-shot child process. The orchestrator waits on a
one-way pipe with a hard deadline; a worker that misses it is killed and
abandoned, and a worker that runs out of memory (or is killed for it by the
OS) is reported as data. Nothing a matcher does can hang or crash the run.
"""

from __future__ import annotations

import multiprocessing
import time
import traceback
from dataclasses import dataclass, field
from typing import Any

from treematch_bench.config import DEFAULT_TIMEOUT
from treematch_bench.errors import MatchError
from treematch_bench.results import Status
from treematch_bench.treediff.mapping import MappingStore
from treematch_bench.treediff.tree import ParsedTree

_OK = "ok"
_OOM = "oom"
_ERROR = "error"
_TIMEOUT = "timeout"
_DIED = "died"


def _match_worker(
    conn: Any,
    matcher: Any,
    src: ParsedTree,
    dst: ParsedTree,
    memory_limit_mb: int | None,
) -> None:
    """Child entry point: run one match and send a single message back.

    The mapping travels as pre-order id pairs. If even reporting fails for
    lack of memory, the child dies without a message, which the parent also
    reads as out-of-memory.
    """
    try:
        if memory_limit_mb is not None:
            import resource

            limit = memory_limit_mb * 1024 * 1024
            resource.setrlimit(resource.RLIMIT_AS, (limit, limit))
        pairs = matcher.match(src.root, dst.root).as_pairs()
    except (MemoryError, RecursionError):
        # stack exhaustion is a resource failure too
        message: tuple[str, Any] = (_OOM, None)
    except Exception:
        message = (_ERROR, traceback.format_exc())
    else:
        message = (_OK, pairs)
    try:
        conn.send(message)
    finally:
        conn.close()


@dataclass
class MatchOutcome:
    """Result of ``MatchExecutor.execute``.

    ``samples`` holds the elapsed nanoseconds of each attempt in run order;
    the first is authoritative. ``mapping`` is only set on success and
    comes from the first attempt.
    """

    status: Status
    samples: list[int] = field(default_factory=list)
    mapping: MappingStore | None = None

    @property
    def ok(self) -> bool:
        return self.status is Status.SUCCESS


def _default_start_method() -> str:
    methods = multiprocessing.get_all_start_methods()
    return "fork" if "fork" in methods else "spawn"


class MatchExecutor:
    """Run matcher invocations in disposable worker processes.

    Args:
        timeout: Default wall-clock budget per attempt, in seconds.
        repeats: Attempts per ``execute`` call. Each attempt gets a fresh
            worker; the loop stops at the first attempt that does not succeed.
        memory_limit_mb: Address-space ceiling set inside each worker.
        start_method: multiprocessing start method. Defaults to ``fork``
            where available so trees are inherited instead of pickled.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        repeats: int = 1,
        memory_limit_mb: int | None = None,
        start_method: str | None = None,
    ) -> None:
        self.timeout = timeout
        self.repeats = repeats
        self.memory_limit_mb = memory_limit_mb
        self._context = multiprocessing.get_context(start_method or _default_start_method())

    def execute(
        self,
        matcher: Any,
        src: ParsedTree,
        dst: ParsedTree,
        timeout: float | None = None,
    ) -> MatchOutcome:
        """Match ``src`` against ``dst`` under the time budget.

        Raises MatchError if the matcher fails with anything other than
        memory exhaustion.
        """
        budget = self.timeout if timeout is None else timeout
        outcome = MatchOutcome(status=Status.SUCCESS)

        for attempt in range(self.repeats):
            kind, payload, elapsed = self._run_once(matcher, src, dst, budget)
            outcome.samples.append(elapsed)

            if kind == _OK:
                if attempt == 0:
                    outcome.mapping = MappingStore.from_pairs(payload, src, dst)
                continue
            if kind == _ERROR:
                raise MatchError(f"Matcher {type(matcher).__name__} failed:\n{payload}")

            status = Status.TIMEOUT if kind == _TIMEOUT else Status.OUT_OF_MEMORY
            if attempt == 0:
                outcome.status = status
            break

        return outcome

    def _run_once(
        self, matcher: Any, src: ParsedTree, dst: ParsedTree, budget: float,
    ) -> tuple[str, Any, int]:
        recv_conn, send_conn = self._context.Pipe(duplex=False)
        proc = self._context.Process(
            target=_match_worker,
            args=(send_conn, matcher, src, dst, self.memory_limit_mb),
            daemon=True,
        )

        t0 = time.perf_counter_ns()
        proc.start()
        send_conn.close()
        try:
            # poll() also returns on EOF, i.e. when the child died silently
            if recv_conn.poll(budget):
                try:
                    kind, payload = recv_conn.recv()
                except (EOFError, OSError):
                    kind, payload = _DIED, None
            else:
                kind, payload = _TIMEOUT, None
            elapsed = time.perf_counter_ns() - t0
        finally:
            recv_conn.close()

        if kind == _TIMEOUT:
            # abandoned: killed but never joined
            proc.kill()
        else:
            proc.join()
        return kind, payload, elapsed
