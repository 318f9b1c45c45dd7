from .models import ProbeResult, ProbeTask, ScanConfig, ScanSummary
from .output import JsonSink, TextSink, make_sink
from .probe import probe
from .ranges import RangeError, expand_ips, expand_ports
from .scanner import scan

__all__ = [
    "ProbeResult",
    "ProbeTask",
    "ScanConfig",
    "ScanSummary",
    "JsonSink",
    "TextSink",
    "make_sink",
    "probe",
    "RangeError",
    "expand_ips",
    "expand_ports",
    "scan",
]
