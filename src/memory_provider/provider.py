"""
Memory access through the current debug session.

`MemoryProvider` reads target memory with the `cdt-gdb-adapter/Memory`
extension request and lists the address ranges of the local variables of the
current frame by evaluating `&name` and `sizeof(name)` for each of them.
"""

from __future__ import annotations

import logging

from memory_provider.common import (
    EVALUATE_COMMAND,
    EVALUATE_CONTEXT,
    MEMORY_REQUEST_COMMAND,
    MemoryReadResult,
    VariableRange,
)
from memory_provider.dap.frames import DebugVariable, StackFrame
from memory_provider.dap.session import DebugSession, DebugSessionManager
from memory_provider.errors import NoActiveFrameError, NoActiveSessionError
from memory_provider.util import hex_to_bytes, hex_to_unsigned_long, parse_address, parse_size

logger = logging.getLogger(__name__)


class MemoryProvider:
    """Read memory through the current debug session."""

    def __init__(
        self,
        session_manager: DebugSessionManager,
        evaluate_context: str = EVALUATE_CONTEXT,
    ):
        """
        Initialize the MemoryProvider.

        :param session_manager: Gives access to the current debug session.
        :param evaluate_context: Context passed with `evaluate` requests.
        """
        self.session_manager = session_manager
        self.evaluate_context = evaluate_context

    def read_memory(self, location: str, length: int) -> MemoryReadResult:
        """
        Read `length` bytes of memory at `location`.

        :param location: Any expression evaluating to an address.
        :param length: Number of bytes to read.
        :return: The bytes read and the address they start at.
        :raises NoActiveSessionError: If there is no current session.
        :raises DAPRequestError: If the adapter rejects the request.
        """
        session = self._get_session()
        if length < 0:
            raise ValueError(f"Length must not be negative: {length}")

        response = session.send_custom_request(
            MEMORY_REQUEST_COMMAND,
            {
                "address": location,
                "length": length,
            },
        )

        return MemoryReadResult(
            bytes=hex_to_bytes(response.body["data"]),
            address=hex_to_unsigned_long(response.body["address"]),
        )

    def get_locals(self) -> list[VariableRange]:
        """
        List the address ranges of the variables visible in the current frame.

        Variables whose address or size does not evaluate to a plain number
        (optimized out, held in a register, ...) are left out.

        :return: Ranges in scope order, then in the order of each scope.
        :raises NoActiveSessionError: If there is no current session.
        :raises NoActiveFrameError: If the session has no selected frame.
        :raises DAPRequestError: If the adapter rejects a request.
        """
        session = self._get_session()
        frame = session.current_frame
        if frame is None:
            raise NoActiveFrameError()

        ranges: list[VariableRange] = []
        for scope in frame.get_scopes():
            for element in scope.get_elements():
                if not isinstance(element, DebugVariable):
                    continue
                variable_range = self._get_variable_range(session, frame, element.name)
                if variable_range is not None:
                    ranges.append(variable_range)
        return ranges

    def _get_session(self) -> DebugSession:
        session = self.session_manager.current_session
        if session is None:
            raise NoActiveSessionError()
        return session

    def _get_variable_range(
        self,
        session: DebugSession,
        frame: StackFrame,
        name: str,
    ) -> VariableRange | None:
        addr_result = self._evaluate(session, frame, f"&{name}")
        size_result = self._evaluate(session, frame, f"sizeof({name})")

        # Make sure the address and size are in the format we expect.
        address = parse_address(addr_result)
        if address is None:
            logger.debug("Skipping '%s': unexpected address %r", name, addr_result)
            return None

        size = parse_size(size_result)
        if size is None:
            logger.debug("Skipping '%s': unexpected size %r", name, size_result)
            return None

        return VariableRange(
            name=name,
            address=address,
            past_the_end_address=address + size,
        )

    def _evaluate(self, session: DebugSession, frame: StackFrame, expression: str) -> str:
        response = session.send_request(
            EVALUATE_COMMAND,
            {
                "expression": expression,
                "context": self.evaluate_context,
                "frameId": frame.id,
            },
        )
        return str(response.body.get("result", ""))
