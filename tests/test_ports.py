"""Port allocation tests."""

from __future__ import annotations

import threading

from plugintester.core import PluginTester, PortAllocator
from plugintester.core.ports import default_start_port


def test_default_start_port_uses_clock_digits():
    assert default_start_port(1_700_000_123_456) == 2000 + 1234


def test_default_start_port_stays_in_range():
    assert 2000 <= default_start_port() < 12000


def test_allocator_hands_out_increasing_ports():
    ports = PortAllocator(start=9000)

    assert [ports.next() for _ in range(3)] == [9001, 9002, 9003]


def test_allocator_is_safe_across_threads():
    ports = PortAllocator(start=0)
    seen: list[int] = []
    lock = threading.Lock()

    def _take() -> None:
        for _ in range(50):
            port = ports.next()
            with lock:
                seen.append(port)

    threads = [threading.Thread(target=_take) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(seen) == list(range(1, 201))


def test_testers_without_an_allocator_share_the_process_default(tmp_path):
    first = PluginTester({"plugin_path": tmp_path}).framework_config.port
    second = PluginTester({"plugin_path": tmp_path}).framework_config.port

    assert second == first + 1
