"""Module for reading target memory with GDB."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memory_provider.gdb.backend import GDBBackend

from memory_provider.common import CommandResult
from memory_provider.gdb.gdb_utils import (
    get_success_payload,
    is_gdb_responses_successful_with_message,
    quote_mi_string,
)


class MemoryManager:
    """Reads memory of the debugged process using GDB."""

    def __init__(self, backend: GDBBackend):
        """
        Initialize the MemoryManager.

        :param backend: An instance of GDBBackend for executing GDB commands.
        """
        self.backend: GDBBackend = backend

    def read_memory(
        self,
        address: str,
        length: int,
        offset: int = 0,
    ) -> tuple[CommandResult, dict]:
        """
        Read `length` bytes at `address` (plus `offset`).

        :param address: Any expression evaluating to an address.
        :param length: Number of bytes to read.
        :param offset: Offset in bytes relative to `address`.
        :return: The command result and a dict with hex `data` and the start `address`.
        """
        offset_option = f" -o {offset}" if offset else ""
        cmd = f"-data-read-memory-bytes{offset_option} {quote_mi_string(address)} {length}"
        responses = self.backend.send_command_and_get_result(cmd)
        result = is_gdb_responses_successful_with_message(responses)
        if not result.success:
            return result, {}

        payload = get_success_payload(responses) or {}
        blocks = payload.get("memory", [])
        if not blocks:
            return CommandResult(False, f"No memory returned for {address}"), {}

        # Only the first block is reported, as cdt-gdb-adapter does.
        return result, {
            "data": blocks[0].get("contents", ""),
            "address": blocks[0].get("begin", ""),
        }
