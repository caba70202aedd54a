"""
In-process request handler answering DAP requests with GDB.

Only the requests the memory provider relies on are handled: `stackTrace`,
`scopes`, `variables`, `evaluate` and the `cdt-gdb-adapter/Memory`
extension. Responses have the shape cdt-gdb-adapter gives them, so a
`DebugSession` built with `create_gdb_session` behaves like a session with
that adapter.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterator
from functools import wraps

from memory_provider.common import (
    EVALUATE_COMMAND,
    MEMORY_REQUEST_COMMAND,
    VAR_REF_LOCAL_BASE,
    VAR_REF_NO_NESTING,
)
from memory_provider.dap.dap_message import DAPResponse
from memory_provider.dap.session import DebugSession
from memory_provider.gdb.backend import GDBBackend

ARGUMENTS = "arguments"

logger = logging.getLogger(__name__)


def register_command(name: str):
    """
    Register a method as a DAP command.

    :param name: The name of the command to register.
    :return: The decorated function with the `_dap_command` attribute.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            return func(*args, **kwargs)

        wrapper._dap_command = name  # noqa: WPS437 # pylint: disable=W0212
        return wrapper

    return decorator


class GDBRequestHandler:
    """Answers DAP requests by running GDB/MI commands."""

    def __init__(self, gdb_backend: GDBBackend):
        """
        Initialize the handler.

        :param gdb_backend: A GDBBackend instance to interact with GDB.
        """
        self.gdb_backend = gdb_backend
        self._commands = {}
        self._handles_lock = threading.Lock()
        self._frame_handles: dict[int, tuple[int, int]] = {}  # frame id -> (thread id, level)
        self._frame_ids_by_location: dict[tuple[int, int], int] = {}
        self._frame_ids = itertools.count(1)

        for attr_name in dir(self):
            attr = getattr(self, attr_name)
            if callable(attr) and hasattr(attr, "_dap_command"):
                self._commands[attr._dap_command] = attr  # noqa: WPS437

    def handle_request(self, request: dict) -> Iterator[dict]:
        """
        Process a request and yield the response.

        :param request: JSON request.
        :return: JSON response.
        """
        command = request.get("command")
        logger.debug("Handling DAP command: %s", request)
        yield from self._commands.get(command, self._unsupported_command)(request)

    def reset_handles(self):
        """Forget frame ids; they are only valid while the program is stopped."""
        with self._handles_lock:
            self._frame_handles.clear()
            self._frame_ids_by_location.clear()

    @register_command("stackTrace")
    def _stack_trace(self, request: dict) -> Iterator[dict]:
        """Process the command `stackTrace`."""
        response = DAPResponse(request=request, command="stackTrace")
        thread_id = self._get_argument(request, "threadId")
        if thread_id is None:
            yield self._error(response, "The 'threadId' field is required in the arguments.")
            return

        result, frames = self.gdb_backend.stack_trace_manager.get_stack_trace(thread_id)
        if not result.success:
            yield self._error(response, result.message)
            return

        stack_frames = []
        with self._handles_lock:
            for frame in frames:
                frame_id = self._get_frame_id(thread_id, frame.pop("level"))
                stack_frames.append({"id": frame_id, **frame})

        response.body = {"stackFrames": stack_frames, "totalFrames": len(stack_frames)}
        yield response.to_dict()

    @register_command("scopes")
    def _scopes(self, request: dict) -> Iterator[dict]:
        """Process the command `scopes`."""
        response = DAPResponse(request=request, command="scopes")
        frame_id = self._get_argument(request, "frameId")
        if frame_id is None:
            yield self._error(response, "The 'frameId' field is required in the arguments.")
            return

        if self._get_frame_handle(frame_id) is None:
            yield self._error(response, f"Unknown frame id: {frame_id}")
            return

        response.body = {
            "scopes": [
                {
                    "name": "Locals",
                    "variablesReference": VAR_REF_LOCAL_BASE + frame_id,
                    "expensive": False,
                },
            ],
        }
        yield response.to_dict()

    @register_command("variables")
    def _variables(self, request: dict) -> Iterator[dict]:
        """Process the `variables` request."""
        response = DAPResponse(request=request, command="variables")
        variables_reference = self._get_argument(request, "variablesReference")
        if variables_reference is None:
            yield self._error(response, "The 'variablesReference' field is required.")
            return

        handle = None
        if variables_reference > VAR_REF_LOCAL_BASE:
            handle = self._get_frame_handle(variables_reference - VAR_REF_LOCAL_BASE)
        if handle is None:
            response.body = {"variables": []}
            yield response.to_dict()
            return

        result, variables = self.gdb_backend.variable_manager.get_local_variables(*handle)
        if not result.success:
            yield self._error(response, result.message)
            return

        response.body = {"variables": variables}
        yield response.to_dict()

    @register_command(EVALUATE_COMMAND)
    def _evaluate(self, request: dict) -> Iterator[dict]:
        """Process the command `evaluate`."""
        response = DAPResponse(request=request, command=EVALUATE_COMMAND)
        expression = self._get_argument(request, "expression")
        if not expression:
            yield self._error(response, "The 'expression' field is required in the arguments.")
            return

        thread_id, level = None, None
        frame_id = self._get_argument(request, "frameId")
        if frame_id is not None:
            handle = self._get_frame_handle(frame_id)
            if handle is None:
                yield self._error(response, f"Unknown frame id: {frame_id}")
                return
            thread_id, level = handle

        result, evaluated = self.gdb_backend.variable_manager.evaluate(expression, thread_id, level)
        if not result.success:
            yield self._error(response, result.message)
            return

        response.body = {
            "result": evaluated["value"],
            "type": evaluated["type"],
            "variablesReference": VAR_REF_NO_NESTING,
        }
        yield response.to_dict()

    @register_command(MEMORY_REQUEST_COMMAND)
    def _memory(self, request: dict) -> Iterator[dict]:
        """Process the command `cdt-gdb-adapter/Memory`."""
        response = DAPResponse(request=request, command=MEMORY_REQUEST_COMMAND)
        address = self._get_argument(request, "address")
        length = self._get_argument(request, "length")
        if not address or length is None:
            yield self._error(
                response,
                "The 'address' and 'length' fields are required in the arguments.",
            )
            return

        offset = self._get_argument(request, "offset", 0)
        result, memory = self.gdb_backend.memory_manager.read_memory(address, length, offset)
        if not result.success:
            yield self._error(response, result.message)
            return

        response.body = memory
        yield response.to_dict()

    def _unsupported_command(self, request: dict) -> Iterator[dict]:
        """Generate a response to an unsupported command."""
        command = request.get("command", "unknown")
        response = DAPResponse(
            request=request,
            success=False,
            command=command,
            message=f"Unsupported command: {command}",
        )
        yield response.to_dict()

    def _get_frame_id(self, thread_id: int, level: int) -> int:
        """Return the id of a frame, reusing the one given out earlier in this stop (lock held)."""
        location = (thread_id, level)
        frame_id = self._frame_ids_by_location.get(location)
        if frame_id is None:
            frame_id = next(self._frame_ids)
            self._frame_ids_by_location[location] = frame_id
            self._frame_handles[frame_id] = location
        return frame_id

    def _get_frame_handle(self, frame_id: int) -> tuple[int, int] | None:
        with self._handles_lock:
            return self._frame_handles.get(frame_id)

    def _error(self, response: DAPResponse, message: str) -> dict:
        response.success = False
        response.message = message
        return response.to_dict()

    def _get_argument(self, request: dict, key: str, default=None):
        """
        Retrieve the argument from request[ARGUMENTS].

        :param request: DAP input request.
        :param key: The key of the argument.
        :param default: Default value if the key is missing.
        :return: Argument value or default.
        """
        return request.get(ARGUMENTS, {}).get(key, default)


def create_gdb_session(gdb_backend: GDBBackend, session_id: str = "gdb") -> DebugSession:
    """
    Create a debug session answered by GDB.

    The session follows the backend's stop and continue notifications, so its
    current frame is the top frame of the last stopped thread.

    :param gdb_backend: A started GDBBackend.
    :param session_id: Identifier of the session.
    :return: The session.
    """
    handler = GDBRequestHandler(gdb_backend)

    def send_message(request: dict) -> dict:
        for message in handler.handle_request(request):
            if message.get("type") == "response":
                return message
        raise RuntimeError(f"No response to request: {request.get('command')}")

    session = DebugSession(send_message, session_id)

    def on_continued():
        handler.reset_handles()
        session.handle_continued()

    gdb_backend.on_stopped = session.handle_stopped
    gdb_backend.on_continued = on_continued
    return session
