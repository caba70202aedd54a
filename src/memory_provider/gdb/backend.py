"""GDBBackend module: run GDB through pygdbmi and exchange GDB/MI commands with it."""

from __future__ import annotations

import itertools
import logging
import threading
import time
from collections.abc import Callable
from queue import Empty, Queue
from typing import Any

from pygdbmi.gdbcontroller import GdbController

from memory_provider.common import CommandResult
from memory_provider.gdb.gdb_utils import is_gdb_responses_successful_with_message
from memory_provider.gdb.memory import MemoryManager
from memory_provider.gdb.stack_trace import StackTraceManager
from memory_provider.gdb.variables import VariableManager

DEFAULT_GDB_PATH = "/usr/bin/gdb"
DEFAULT_TIMEOUT_WAITING_RESPONSE_FROM_GDB = 20.0

logger = logging.getLogger(__name__)


class GDBBackend:
    """Class for interacting with GDB via pygdbmi."""

    def __init__(self, gdb_path: str = DEFAULT_GDB_PATH):
        """
        Initialize the GDBBackend.

        :param gdb_path: Path to the GDB executable.
        """
        self._gdb_lock = threading.Lock()
        self._gdb_path: str = gdb_path
        self._gdbmi: GdbController | None = None
        self._stop_monitoring = threading.Event()
        self._monitor_thread: threading.Thread | None = None
        self._response_queue: Queue[dict[str, Any]] = Queue()
        self._tokens = itertools.count(1)

        self.on_stopped: Callable[[int], None] | None = None
        self.on_continued: Callable[[], None] | None = None

        self.stack_trace_manager = StackTraceManager(self)
        self.variable_manager = VariableManager(self)
        self.memory_manager = MemoryManager(self)

    def start(self):
        """Start GDB and perform basic setup."""
        self._gdbmi = GdbController(
            command=[self._gdb_path, "--nx", "--quiet", "--interpreter=mi3"],
        )
        self._start_monitoring()
        self._send_initial_commands()
        logger.info("GDB started: %s", self._gdb_path)

    def stop(self):
        """Stop GDB and terminate the process."""
        self._stop_monitoring.set()
        if self._monitor_thread:
            self._monitor_thread.join()
            self._monitor_thread = None
        if self._gdbmi:
            self._gdbmi.exit()
            self._gdbmi = None
            logger.info("GDB stopped")

    def _start_monitoring(self):
        """Start a thread to monitor the output of GDB."""
        self._stop_monitoring.clear()
        self._monitor_thread = threading.Thread(target=self._monitor_gdb_events, daemon=True)
        self._monitor_thread.start()

    def _monitor_gdb_events(self):
        """Background loop reading GDB output."""
        while not self._stop_monitoring.is_set():
            for response in self._get_gdb_responses():
                self._process_gdb_response(response)
            time.sleep(0.1)

    def _get_gdb_responses(self) -> list:
        """
        Fetch responses from GDB.

        Raises:
            RuntimeError: If GDB is not running.
        """
        gdbmi = self._gdbmi
        if not gdbmi:
            raise RuntimeError("GDB is not running")

        return gdbmi.get_gdb_response(raise_error_on_timeout=False)

    def _process_gdb_response(self, response: dict):
        """Dispatch execution notifications; queue everything else."""
        logger.debug("response: %s", response)

        if self._is_notify_event(response, "stopped"):
            self._handle_stop_event(response)
        elif self._is_notify_event(response, "running"):
            self._handle_continue_event()
        else:
            self._response_queue.put(response)

    def _is_notify_event(self, response: dict, message: str) -> bool:
        """Check if the response is a 'notify' event with a specific message."""
        return response.get("type") == "notify" and response.get("message") == message

    def _handle_stop_event(self, response: dict):
        payload = response.get("payload") or {}
        if "exited" in payload.get("reason", ""):
            self._handle_continue_event()
            return

        default_thread_id = 1
        thread_id = int(payload.get("thread-id", default_thread_id))
        if self.on_stopped:
            self.on_stopped(thread_id)

    def _handle_continue_event(self):
        if self.on_continued:
            self.on_continued()

    def send_command_and_get_result(
        self,
        command: str,
        timeout: float = DEFAULT_TIMEOUT_WAITING_RESPONSE_FROM_GDB,
        expected_response=("done", "error", "running"),
    ) -> list[dict]:
        """
        Send a command to GDB and wait for the response.

        The command is sent with a fresh MI token. The response queue is cleared
        before sending, then responses are read until the result record carrying
        that token arrives with one of the expected messages. Result records of
        earlier commands that timed out are dropped.

        Raises:
            RuntimeError: If GDB is not running.

        Args:
            command (str): The GDB/MI command to send (e.g., "-stack-list-frames").
            timeout (float): Maximum time (in seconds) to wait for a response.
            expected_response (tuple[str, ...]): Result messages that end the wait.

        Returns:
            list[dict]: The responses from GDB, ending with the result record,
                or a single synthetic error record on timeout.
        """
        if not self._gdbmi:
            raise RuntimeError("GDB is not running")

        with self._gdb_lock:
            token = next(self._tokens)
            self._clear_response_queue()
            self._send_command(f"{token}{command}")
            return self._read_responses_from_queue(command, token, timeout, expected_response)

    def send_command_and_check_for_success(self, command: str) -> CommandResult:
        """Send a command to GDB and check if the response indicates success."""
        responses = self.send_command_and_get_result(command)
        return is_gdb_responses_successful_with_message(responses)

    def _send_command(self, command: str) -> None:
        logger.debug("Sending command to gdb: %s", command)
        if not self._gdbmi:
            raise RuntimeError("GDB is not running")
        self._gdbmi.write(command, read_response=False)

    def _read_responses_from_queue(
        self,
        command: str,
        token: int,
        timeout: float,
        expected_response: tuple,
        expected_type="result",
    ) -> list[dict]:  # pylint: disable=too-many-arguments too-many-positional-arguments
        """Read responses from the GDB queue within the specified timeout."""
        start_time = time.time()
        all_responses = []

        while time.time() - start_time <= timeout:
            try:
                response = self._response_queue.get(timeout=0.1)
            except Empty:
                continue

            if response.get("type") == "result" and response.get("token") != token:
                logger.debug("Dropping result of an earlier command: %s", response)
                continue

            all_responses.append(response)

            if self._has_response_of_interest(response, expected_response, expected_type):
                return all_responses

        return self._handle_timeout_error(command, token, timeout)

    def _handle_timeout_error(self, command: str, token: int, timeout: float) -> list[dict]:
        """Generate an error record when the response timeout is exceeded."""
        error_message = (
            f"Expected response not received within {timeout} seconds for command '{command}'."
        )
        logger.warning(error_message)
        return [
            {
                "type": "result",
                "message": "error",
                "payload": {"msg": error_message},
                "token": token,
                "stream": "stdout",
            },
        ]

    def _clear_response_queue(self) -> None:
        """Clear the GDB response queue."""
        while not self._response_queue.empty():
            try:
                self._response_queue.get_nowait()
            except Empty:
                break

    def _has_response_of_interest(
        self,
        response: dict,
        expected_response: tuple,
        expected_type="result",
    ) -> bool:
        """Check whether the response contains one of the expected values."""
        return (
            response.get("type") == expected_type and response.get("message") in expected_response
        )

    def _send_initial_commands(self):
        """Perform initial GDB setup."""
        self.send_command_and_get_result("-gdb-set mi-async on")
        self.send_command_and_get_result("-gdb-set confirm off")
        self.send_command_and_get_result("-gdb-set pagination off")
