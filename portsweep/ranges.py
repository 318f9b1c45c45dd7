from __future__ import annotations

import re
from typing import List

_UINT = re.compile(r"\+?[0-9]+")


class RangeError(ValueError):
    pass


def parse_uint(text: str, bits: int) -> int:
    if not _UINT.fullmatch(text):
        raise RangeError(f"Invalid bound: {text!r}")
    value = int(text)
    if value >= 1 << bits:
        raise RangeError(f"Bound out of range: {text!r}")
    return value


def _parse_bound(text: str, bits: int, strict: bool) -> int:
    try:
        return parse_uint(text, bits)
    except RangeError:
        if strict:
            raise
        # unparseable bounds degrade to 0
        return 0


def expand_ips(spec: str, strict: bool = False) -> List[str]:
    """
    Expands an IP specifier into a list of addresses.
    Supports:
    - Single address: "10.0.0.5" (returned verbatim, not validated)
    - Last-octet range: "10.0.0.1-20"

    A reversed range yields an empty list.
    """
    base, sep, last = spec.rpartition(".")
    if not sep or "-" not in last:
        return [spec]

    start_s, end_s = last.split("-", 1)
    start = _parse_bound(start_s, 8, strict)
    end = _parse_bound(end_s, 8, strict)
    return [f"{base}.{i}" for i in range(start, end + 1)]


def expand_ports(spec: str, strict: bool = False) -> List[int]:
    """
    Expands a port specifier into a list of ports.
    Supports:
    - Single port: "80"
    - Range: "1-1024"

    A single port that does not parse yields an empty list in either mode.
    """
    if "-" in spec:
        start_s, end_s = spec.split("-", 1)
        start = _parse_bound(start_s, 16, strict)
        end = _parse_bound(end_s, 16, strict)
        return list(range(start, end + 1))

    try:
        return [parse_uint(spec.strip(), 16)]
    except RangeError:
        return []
