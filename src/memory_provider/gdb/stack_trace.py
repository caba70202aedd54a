"""
Module for fetching stack traces from GDB.

Frames are returned with their GDB level; the request handler turns the
(thread, level) pair into a DAP frame id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memory_provider.gdb.backend import GDBBackend

from memory_provider.common import CommandResult
from memory_provider.gdb.gdb_utils import (
    get_success_payload,
    is_gdb_responses_successful_with_message,
)


class StackTraceManager:
    """Manages stack traces for threads using GDB."""

    def __init__(self, backend: GDBBackend):
        """
        Initialize the StackTraceManager.

        :param backend: An instance of GDBBackend for executing GDB commands.
        """
        self.backend: GDBBackend = backend

    def get_stack_trace(self, thread_id: int) -> tuple[CommandResult, list[dict]]:
        """
        Return the call stack for the specified thread.

        :param thread_id: ID of the thread to fetch the stack trace for.
        :return: The command result and the parsed frames, innermost first.
        """
        responses = self.backend.send_command_and_get_result(
            f"-stack-list-frames --thread {thread_id}",
        )
        result = is_gdb_responses_successful_with_message(responses)
        if not result.success:
            return result, []

        payload = get_success_payload(responses) or {}
        return result, [self._parse_frame(frame_info) for frame_info in payload.get("stack", [])]

    def _parse_frame(self, frame_info: dict) -> dict:
        """
        Parse a single frame from GDB response.

        :param frame_info: Dictionary containing frame information.
        :return: The frame with its level and DAP-style fields.
        """
        level = self._safe_int(frame_info.get("level"))
        line = self._safe_int(frame_info.get("line", "0"))

        file_name = frame_info.get("file", "<unknown>")
        fullname = frame_info.get("fullname", "")

        source = {"name": file_name}
        if fullname:
            source["path"] = fullname

        return {
            "level": level,
            "name": frame_info.get("func", "<unknown>"),
            "source": source,
            "line": line,
            "column": 0,  # GDB does not provide columns
            "instructionPointerReference": frame_info.get("addr", ""),
        }

    def _safe_int(self, value: str | None) -> int:
        """
        Safely convert a string to an integer.

        :param value: The string to convert.
        :return: The integer value or 0 if conversion fails.
        """
        try:
            return int(value) if value is not None else 0
        except ValueError:
            return 0
