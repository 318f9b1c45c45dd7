from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from colorama import init as colorama_init

from .logger import setup_logging
from .models import ScanConfig
from .output import make_sink
from .ranges import RangeError, expand_ips, expand_ports, parse_uint
from .scanner import scan

logger = logging.getLogger("portsweep")

IP_PROMPT = "Enter IP or range: "
PORT_PROMPT = "Enter Port or range: "
DURATION_PROMPT = "Enter duration: "
DISPLAY_PROMPT = "Only display open (y/n): "


class StartupError(Exception):
    """Raised when a run cannot start; nothing has been scanned yet."""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="portsweep", description="Concurrent TCP connect scanner")
    p.add_argument("-i", "--ip", help="IP or last-octet range, e.g. 10.0.0.1-20")
    p.add_argument("-p", "--port", help="Port or range, e.g. 1-1024")
    p.add_argument("-d", "--duration", help="Connect timeout per probe in milliseconds")
    p.add_argument("-y", "--yes", action="store_true", help="Only display open ports")
    p.add_argument("-n", "--no", action="store_true", help="Display open and closed ports")
    p.add_argument("-j", "--json", action="store_true", help="Print results as one JSON array")
    p.add_argument("--strict", action="store_true", help="Reject malformed range bounds instead of using 0")
    p.add_argument("--no-color", action="store_true", help="Plain status lines")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    return p


def _ask(prompt: str) -> str:
    try:
        return input(prompt)
    except EOFError as e:
        raise StartupError(f"No input for '{prompt.strip()}'") from e


def _value(flag_value: Optional[str], name: str, prompt: str, structured: bool) -> str:
    if flag_value is not None:
        if not structured:
            print(f"Using flag defined {name}")
        return flag_value
    if structured:
        raise StartupError(f"--json requires the {name} to be supplied as a flag")
    return _ask(prompt)


def _parse_duration(text: str) -> int:
    text = text.strip()
    try:
        return parse_uint(text, 64)
    except RangeError as e:
        raise StartupError(f"Failed to parse duration {text!r} as milliseconds") from e


def resolve_config(args: argparse.Namespace) -> Tuple[ScanConfig, List[str], List[int]]:
    """
    Collects the run inputs from flags, prompting for what is missing in
    text mode. With --json every input must come from a flag.
    """
    structured = args.json

    ip_spec = _value(args.ip, "IP", IP_PROMPT, structured).strip()
    ips = expand_ips(ip_spec, strict=args.strict)

    port_spec = _value(args.port, "port", PORT_PROMPT, structured).strip()
    ports = expand_ports(port_spec, strict=args.strict)

    timeout_ms = _parse_duration(_value(args.duration, "duration", DURATION_PROMPT, structured))

    announce = False
    if args.yes:
        show_only_open = True
        announce = True
    elif args.no:
        show_only_open = False
    elif structured:
        raise StartupError("--json requires -y or -n to choose whether only open ports are shown")
    elif len(ips) > 1 or len(ports) > 1:
        show_only_open = _ask(DISPLAY_PROMPT).strip() == "y"
        announce = True
    else:
        show_only_open = False

    if announce and not structured:
        print(f"\nScanning {len(ports)} ports on {len(ips)} IP addresses")

    config = ScanConfig(
        ip_spec=ip_spec,
        port_spec=port_spec,
        timeout_ms=timeout_ms,
        show_only_open=show_only_open,
        structured=structured,
    )
    return config, ips, ports


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if args.yes and args.no:
        logger.warning("You can't use -n and -y at the same time; -y takes effect")

    try:
        config, ips, ports = resolve_config(args)
    except (StartupError, RangeError) as e:
        logger.error(str(e))
        return 1

    color = not args.no_color and not config.structured
    if color:
        colorama_init()

    if not config.structured:
        print()

    sink = make_sink(config.structured, sys.stdout, color=color)
    try:
        scan(ips, ports, config.timeout_ms, sink, show_only_open=config.show_only_open)
    except ValueError as e:
        logger.error(f"Cannot probe target: {e}")
        return 1

    return 0
