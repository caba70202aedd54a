"""Integration tests reading memory and locals of a program stopped in GDB."""

import shutil
from pathlib import Path

import pytest

from memory_provider.dap.session import DebugSessionManager
from memory_provider.provider import MemoryProvider


def is_ptrace_scope_allowed() -> bool:
    """
    Return True unless /proc/sys/kernel/yama/ptrace_scope forbids all ptrace use
    (value 3), which would prevent GDB from running the program.
    """
    ptrace_path = Path("/proc/sys/kernel/yama/ptrace_scope")
    if not ptrace_path.exists():
        return True

    with ptrace_path.open("r") as file:
        return file.read().strip() != "3"


@pytest.mark.skipif(
    shutil.which("gdb") is None or shutil.which("gcc") is None or not is_ptrace_scope_allowed(),
    reason="Test requires gdb, gcc and ptrace permission.",
)
def test_get_locals_and_read_memory(stopped_session: DebugSessionManager):
    """Should list the locals of main and read their bytes back."""
    provider = MemoryProvider(stopped_session)

    ranges = {variable_range.name: variable_range for variable_range in provider.get_locals()}

    assert set(ranges) == {"counter", "big", "name"}
    sizes = {
        name: variable_range.past_the_end_address - variable_range.address
        for name, variable_range in ranges.items()
    }
    assert sizes == {"counter": 4, "big": 8, "name": 12}

    result = provider.read_memory("&counter", 4)
    assert result.address == ranges["counter"].address
    assert int.from_bytes(result.bytes, "little") == 42

    name_bytes = provider.read_memory(hex(ranges["name"].address), 6)
    assert name_bytes.bytes == b"memory"

    assert provider.get_locals() == list(ranges.values())
