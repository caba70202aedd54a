"""Pytest configuration and fixtures for integration tests against a real GDB."""

import shutil
import subprocess  # nosec B404 # noqa: S404
import threading
from collections.abc import Generator
from pathlib import Path

import pytest

from memory_provider.dap.session import DebugSession, DebugSessionManager
from memory_provider.gdb.backend import GDBBackend
from memory_provider.gdb.request_handler import create_gdb_session

GDB_PATH = shutil.which("gdb")
GCC_PATH = shutil.which("gcc")
STOP_TIMEOUT = 15.0

C_SOURCE = """\
#include <stdint.h>

int main(void)
{
    int counter = 42;
    uint64_t big = 0x1122334455667788ULL;
    char name[12] = "memory";
    counter += name[0];  /* stop here */
    return counter > 0 ? 0 : (int)big;
}
"""


@pytest.fixture()
def debug_program(tmp_path: Path) -> tuple[Path, int]:
    """Compile the test program in debug mode; return its path and the stop line."""
    source = tmp_path / "locals.c"
    source.write_text(C_SOURCE)
    binary = tmp_path / "locals_debug"
    compile_cmd = [str(GCC_PATH), "-g", "-O0", "-o", str(binary), str(source)]
    subprocess.run(compile_cmd, check=True)  # nosec B603 # noqa: S603

    stop_line = C_SOURCE.splitlines().index("    counter += name[0];  /* stop here */") + 1
    return binary, stop_line


@pytest.fixture()
def stopped_session(
    debug_program: tuple[Path, int],  # noqa: WPS442
) -> Generator[DebugSessionManager, None, None]:
    """Run the test program under GDB until it stops at the marked line."""
    binary, stop_line = debug_program
    backend = GDBBackend(gdb_path=str(GDB_PATH))
    backend.start()

    session: DebugSession = create_gdb_session(backend)
    stopped = threading.Event()

    def on_stopped(thread_id: int):  # noqa: WPS430
        session.handle_stopped(thread_id)
        stopped.set()

    backend.on_stopped = on_stopped

    backend.send_command_and_check_for_success(f"-file-exec-and-symbols {binary}")
    backend.send_command_and_check_for_success(f"-break-insert locals.c:{stop_line}")
    backend.send_command_and_get_result("-exec-run")
    if not stopped.wait(STOP_TIMEOUT):
        backend.stop()
        pytest.skip("The program did not stop under GDB.")

    manager = DebugSessionManager()
    manager.add_session(session)
    yield manager

    backend.stop()
