"""Unit tests for GDBBackend that do not start GDB."""

from unittest.mock import Mock

import pytest

from memory_provider.gdb.backend import GDBBackend


@pytest.fixture
def backend() -> GDBBackend:
    """Provide a backend that was never started."""
    return GDBBackend(gdb_path="/usr/bin/gdb")


def test_send_command_requires_running_gdb(backend: GDBBackend):
    """Should refuse to send commands before GDB is started."""
    with pytest.raises(RuntimeError, match="GDB is not running"):
        backend.send_command_and_get_result("-stack-list-frames")


def test_stopped_notification_calls_back(backend: GDBBackend):
    """Should pass the stopped thread to the stop callback."""
    backend.on_stopped = Mock()

    backend._process_gdb_response(  # noqa: WPS437
        {
            "type": "notify",
            "message": "stopped",
            "payload": {"reason": "breakpoint-hit", "thread-id": "2"},
        },
    )

    backend.on_stopped.assert_called_once_with(2)


def test_exit_notification_counts_as_continue(backend: GDBBackend):
    """Should treat a process exit as the end of the stopped state."""
    backend.on_stopped = Mock()
    backend.on_continued = Mock()

    backend._process_gdb_response(  # noqa: WPS437
        {"type": "notify", "message": "stopped", "payload": {"reason": "exited-normally"}},
    )

    backend.on_stopped.assert_not_called()
    backend.on_continued.assert_called_once_with()


def test_running_notification_calls_back(backend: GDBBackend):
    """Should call the continue callback when execution resumes."""
    backend.on_continued = Mock()

    backend._process_gdb_response(  # noqa: WPS437
        {"type": "notify", "message": "running", "payload": {"thread-id": "all"}},
    )

    backend.on_continued.assert_called_once_with()


def test_other_records_are_queued(backend: GDBBackend):
    """Should queue records that are not execution notifications."""
    record = {"type": "result", "message": "done", "payload": None}

    backend._process_gdb_response(record)  # noqa: WPS437

    assert backend._response_queue.get_nowait() == record  # noqa: WPS437


def test_read_responses_until_result(backend: GDBBackend):
    """Should collect queued records up to the result record."""
    console = {"type": "console", "message": None, "payload": "text"}
    result = {"type": "result", "message": "done", "payload": {}, "token": 7}
    backend._response_queue.put(console)  # noqa: WPS437
    backend._response_queue.put(result)  # noqa: WPS437

    responses = backend._read_responses_from_queue(  # noqa: WPS437
        "-stack-list-frames",
        7,
        timeout=1.0,
        expected_response=("done", "error"),
    )

    assert responses == [console, result]


def test_read_responses_timeout(backend: GDBBackend):
    """Should produce an error record when no result arrives in time."""
    responses = backend._read_responses_from_queue(  # noqa: WPS437
        "-stack-list-frames",
        1,
        timeout=0.2,
        expected_response=("done", "error"),
    )

    assert len(responses) == 1
    assert responses[0]["message"] == "error"
    assert "-stack-list-frames" in responses[0]["payload"]["msg"]
    assert responses[0]["token"] == 1


def test_read_responses_drops_late_results(backend: GDBBackend):
    """Should not take the result of an earlier, timed out command as its own."""
    late = {"type": "result", "message": "done", "payload": {"value": "0x1000"}, "token": 3}
    result = {"type": "result", "message": "done", "payload": {"value": "4"}, "token": 4}
    backend._response_queue.put(late)  # noqa: WPS437
    backend._response_queue.put(result)  # noqa: WPS437

    responses = backend._read_responses_from_queue(  # noqa: WPS437
        '-var-create - * "sizeof(x)"',
        4,
        timeout=1.0,
        expected_response=("done", "error"),
    )

    assert responses == [result]


def test_send_command_uses_fresh_tokens(backend: GDBBackend):
    """Should prefix every command with a new token and wait for the matching result."""
    backend._gdbmi = Mock()  # noqa: WPS437
    written = []

    def write(command: str, read_response: bool = True):  # noqa: WPS430
        written.append(command)
        token = len(written)
        # a result left over from the previous command arrives first
        backend._response_queue.put(  # noqa: WPS437
            {"type": "result", "message": "done", "payload": {"old": True}, "token": token - 1},
        )
        backend._response_queue.put(  # noqa: WPS437
            {"type": "result", "message": "done", "payload": {"n": token}, "token": token},
        )

    backend._gdbmi.write.side_effect = write  # noqa: WPS437

    first = backend.send_command_and_get_result("-gdb-version", timeout=1.0)
    second = backend.send_command_and_get_result("-list-features", timeout=1.0)

    assert written == ["1-gdb-version", "2-list-features"]
    assert first[-1]["payload"] == {"n": 1}
    assert second == [
        {"type": "result", "message": "done", "payload": {"n": 2}, "token": 2},
    ]
