from __future__ import annotations

import logging
import os
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from typing import Iterator, List, Optional

from .models import ProbeResult, ProbeTask, ScanSummary
from .output import ResultSink
from .probe import probe

logger = logging.getLogger(__name__)

PENDING_PER_WORKER = 4


def default_workers() -> int:
    # CPUs this process may run on, not every CPU on the host
    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


def iter_tasks(ips: List[str], ports: List[int], timeout_ms: int) -> Iterator[ProbeTask]:
    for ip in ips:
        for port in ports:
            yield ProbeTask(ip, port, timeout_ms)


def run_task(task: ProbeTask, sink: ResultSink, show_only_open: bool) -> ProbeResult:
    result = ProbeResult(task.ip, task.port, probe(task.ip, task.port, task.timeout_ms))
    if result.open or not show_only_open:
        sink.accept(result)
    return result


def scan(
    ips: List[str],
    ports: List[int],
    timeout_ms: int,
    sink: ResultSink,
    show_only_open: bool = False,
    workers: Optional[int] = None,
) -> ScanSummary:
    """
    Probes every (ip, port) pair on a thread pool and returns once all of
    them have completed. Results reach the sink from the worker threads, in
    completion order; closed ones are dropped when show_only_open is set.
    sink.finish() is called after the last completion.
    """
    total = len(ips) * len(ports)
    workers = workers or default_workers()
    start_all = time.perf_counter()

    dispatched = 0
    completed = 0
    forwarded = 0
    open_count = 0

    if total:
        logger.debug("Dispatching %d probes on %d workers", total, workers)
        tasks = iter_tasks(ips, ports, timeout_ms)
        max_pending = max(workers * PENDING_PER_WORKER, 100)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            pending = set()

            def submit_next() -> bool:
                nonlocal dispatched
                try:
                    task = next(tasks)
                except StopIteration:
                    return False
                pending.add(pool.submit(run_task, task, sink, show_only_open))
                dispatched += 1
                return True

            while len(pending) < max_pending and submit_next():
                pass

            try:
                while pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for fut in done:
                        r = fut.result()
                        completed += 1
                        if r.open:
                            open_count += 1
                        if r.open or not show_only_open:
                            forwarded += 1

                    while len(pending) < max_pending and submit_next():
                        pass
            except BaseException:
                # drop queued probes; only the ones already running are awaited
                pool.shutdown(wait=False, cancel_futures=True)
                raise

    if completed != total:
        raise RuntimeError(f"Scan drained after {completed} of {total} probes")

    summary = ScanSummary(
        ip_count=len(ips),
        port_count=len(ports),
        dispatched=dispatched,
        completed=completed,
        forwarded=forwarded,
        open_count=open_count,
        elapsed_s=time.perf_counter() - start_all,
    )
    logger.debug(
        "Scan drained: %d/%d completed, %d open, %d forwarded",
        completed,
        total,
        open_count,
        forwarded,
    )
    sink.finish(summary)
    return summary
