import io
import json
import threading
import time
import unittest
from unittest.mock import patch

from portsweep.models import ProbeTask
from portsweep.output import JsonSink, ResultSink, TextSink
from portsweep.scanner import default_workers, iter_tasks, scan


class RecordingSink(ResultSink):
    def __init__(self):
        self.lock = threading.Lock()
        self.events = []

    def accept(self, result):
        with self.lock:
            self.events.append(("accept", result))

    def finish(self, summary):
        self.events.append(("finish", summary))


def open_on_even_ports(ip, port, timeout_ms):
    return port % 2 == 0


class TestIterTasks(unittest.TestCase):
    def test_row_major_order(self):
        tasks = list(iter_tasks(["a", "b"], [1, 2], 50))
        self.assertEqual(
            tasks,
            [ProbeTask("a", 1, 50), ProbeTask("a", 2, 50), ProbeTask("b", 1, 50), ProbeTask("b", 2, 50)],
        )


class TestScan(unittest.TestCase):
    """Coordinator dispatch, filtering and completion."""

    def test_default_workers_is_positive(self):
        self.assertGreaterEqual(default_workers(), 1)

    @patch("portsweep.scanner.os.cpu_count", return_value=64)
    @patch("portsweep.scanner.os.sched_getaffinity", return_value={0, 1}, create=True)
    def test_default_workers_follows_affinity(self, mock_affinity, mock_cpu_count):
        self.assertEqual(default_workers(), 2)
        mock_affinity.assert_called_once_with(0)

    @patch("portsweep.scanner.os", spec=["cpu_count"])
    def test_default_workers_without_affinity(self, mock_os):
        mock_os.cpu_count.return_value = None
        self.assertEqual(default_workers(), 1)
        mock_os.cpu_count.return_value = 3
        self.assertEqual(default_workers(), 3)

    @patch("portsweep.scanner.probe")
    def test_dispatches_one_task_per_pair(self, mock_probe):
        mock_probe.return_value = False
        ips = ["10.0.0.1", "10.0.0.2", "10.0.0.3"]
        ports = [22, 80]

        summary = scan(ips, ports, 100, RecordingSink(), workers=4)

        self.assertEqual(mock_probe.call_count, 6)
        called = sorted(c.args for c in mock_probe.call_args_list)
        self.assertEqual(called, sorted((ip, p, 100) for ip in ips for p in ports))
        self.assertEqual(summary.dispatched, 6)
        self.assertEqual(summary.completed, 6)

    @patch("portsweep.scanner.probe")
    def test_finish_runs_after_every_completion(self, mock_probe):
        def slow(ip, port, timeout_ms):
            time.sleep(0.001 * (port % 5))
            return True

        mock_probe.side_effect = slow
        sink = RecordingSink()
        ports = list(range(1, 301))

        summary = scan(["127.0.0.1"], ports, 10, sink, workers=8)

        kinds = [kind for kind, _ in sink.events]
        self.assertEqual(kinds.count("accept"), 300)
        self.assertEqual(kinds[-1], "finish")
        self.assertEqual(kinds.count("finish"), 1)
        self.assertEqual(summary.open_count, 300)
        seen = sorted(r.port for kind, r in sink.events if kind == "accept")
        self.assertEqual(seen, ports)

    @patch("portsweep.scanner.probe", side_effect=open_on_even_ports)
    def test_show_only_open_drops_closed(self, mock_probe):
        sink = RecordingSink()
        summary = scan(["10.0.0.1"], list(range(1, 11)), 100, sink, show_only_open=True, workers=2)

        forwarded = [r for kind, r in sink.events if kind == "accept"]
        self.assertTrue(all(r.open for r in forwarded))
        self.assertEqual(len(forwarded), 5)
        self.assertEqual(summary.completed, 10)
        self.assertEqual(summary.forwarded, 5)

    @patch("portsweep.scanner.probe", side_effect=open_on_even_ports)
    def test_verbose_forwards_everything(self, mock_probe):
        out = io.StringIO()
        sink = JsonSink(out)
        scan(["10.0.0.1", "10.0.0.2"], list(range(1, 6)), 100, sink, workers=3)

        payload = json.loads(out.getvalue())
        self.assertEqual(len(payload), 10)
        self.assertEqual(sum(1 for e in payload if not e["status"]), 6)

    @patch("portsweep.scanner.probe")
    def test_zero_tasks_finishes_immediately(self, mock_probe):
        out = io.StringIO()
        summary = scan(["10.0.0.1"], [], 100, JsonSink(out))

        mock_probe.assert_not_called()
        self.assertEqual(summary.dispatched, 0)
        self.assertEqual(out.getvalue(), "[]\n")

    @patch("portsweep.scanner.probe")
    def test_malformed_address_propagates(self, mock_probe):
        mock_probe.side_effect = ValueError("'bogus' does not appear to be an IPv4 or IPv6 address")
        with self.assertRaises(ValueError):
            scan(["bogus"], [80], 100, RecordingSink(), workers=1)

    @patch("portsweep.scanner.probe")
    def test_malformed_address_cancels_queued_tasks(self, mock_probe):
        def fake(ip, port, timeout_ms):
            if ip == "bogus":
                raise ValueError("'bogus' does not appear to be an IPv4 or IPv6 address")
            time.sleep(0.05)
            return False

        mock_probe.side_effect = fake
        ips = ["bogus"] + [f"10.0.0.{i}" for i in range(1, 51)]

        with self.assertRaises(ValueError):
            scan(ips, [80], 100, RecordingSink(), workers=1)

        # only the task already running on the single worker gets through
        self.assertLessEqual(mock_probe.call_count, 2)

    @patch("portsweep.scanner.probe", return_value=True)
    def test_text_mode_ends_with_summary(self, mock_probe):
        out = io.StringIO()
        scan(["10.0.0.1"], [80, 443], 100, TextSink(out), workers=2)

        lines = out.getvalue().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertEqual(
            sorted(lines[:2]),
            ["Status: Port 443 on IP 10.0.0.1 is OPEN", "Status: Port 80 on IP 10.0.0.1 is OPEN"],
        )
        self.assertTrue(lines[2].startswith("Scanned 2 ports on 1 IP addresses in "))


if __name__ == "__main__":
    unittest.main()
