from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ProbeTask:
    ip: str
    port: int
    timeout_ms: int


@dataclass(frozen=True)
class ProbeResult:
    ip: str
    port: int
    open: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"ip": self.ip, "port": self.port, "status": self.open}


@dataclass(frozen=True)
class ScanSummary:
    ip_count: int
    port_count: int
    dispatched: int
    completed: int
    forwarded: int
    open_count: int
    elapsed_s: float


@dataclass(frozen=True)
class ScanConfig:
    """The five inputs a run needs, however they were collected."""

    ip_spec: str
    port_spec: str
    timeout_ms: int
    show_only_open: bool
    structured: bool
