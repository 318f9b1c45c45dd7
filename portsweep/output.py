from __future__ import annotations

import json
import sys
import threading
from typing import List, Optional, TextIO

from colorama import Fore, Style

from .models import ProbeResult, ScanSummary


def format_status(r: ProbeResult, color: bool = False) -> str:
    state = "OPEN" if r.open else "CLOSED"
    if color:
        shade = Fore.GREEN if r.open else Fore.RED
        state = f"{Style.BRIGHT}{shade}{state}{Style.RESET_ALL}"
    return f"Status: Port {r.port} on IP {r.ip} is {state}"


def format_elapsed(seconds: float) -> str:
    if seconds >= 1:
        return f"{seconds:.2f}s"
    if seconds >= 1e-3:
        return f"{seconds * 1e3:.2f}ms"
    if seconds >= 1e-6:
        return f"{seconds * 1e6:.2f}µs"
    return f"{seconds * 1e9:.2f}ns"


def format_summary(s: ScanSummary) -> str:
    return (
        f"Scanned {s.port_count} ports on {s.ip_count} IP addresses "
        f"in {format_elapsed(s.elapsed_s)}"
    )


class ResultSink:
    """Receives forwarded results from worker threads; finish() runs once on the caller."""

    def accept(self, result: ProbeResult) -> None:
        raise NotImplementedError

    def finish(self, summary: ScanSummary) -> None:
        raise NotImplementedError


class TextSink(ResultSink):
    def __init__(self, stream: Optional[TextIO] = None, color: bool = False):
        self.stream = stream or sys.stdout
        self.color = color
        self._lock = threading.Lock()

    def _emit(self, line: str) -> None:
        # one write per line so concurrent workers never split a line
        with self._lock:
            self.stream.write(line + "\n")
            self.stream.flush()

    def accept(self, result: ProbeResult) -> None:
        self._emit(format_status(result, self.color))

    def finish(self, summary: ScanSummary) -> None:
        self._emit(format_summary(summary))


class JsonSink(ResultSink):
    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self._lock = threading.Lock()
        self._results: List[ProbeResult] = []
        self._finished = False

    def accept(self, result: ProbeResult) -> None:
        with self._lock:
            self._results.append(result)

    @property
    def results(self) -> List[ProbeResult]:
        with self._lock:
            return list(self._results)

    def render(self) -> str:
        return json.dumps([r.to_dict() for r in self.results])

    def finish(self, summary: ScanSummary) -> None:
        if self._finished:
            raise RuntimeError("Structured results were already written")
        self._finished = True
        self.stream.write(self.render() + "\n")
        self.stream.flush()


def make_sink(structured: bool, stream: Optional[TextIO] = None, color: bool = False) -> ResultSink:
    if structured:
        return JsonSink(stream)
    return TextSink(stream, color=color)
