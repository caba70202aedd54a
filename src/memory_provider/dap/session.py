"""
Debug session model for the Debug Adapter Protocol (DAP).

`DebugSession` sends requests through any callable that takes a DAP request
dictionary and returns the matching response dictionary, so it works the same
on top of an in-process request handler or a transport owned by a host.
`DebugSessionManager` keeps track of the sessions and of the current one.
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable

from memory_provider.dap.dap_message import DAPRequest, DAPResponse
from memory_provider.dap.frames import StackFrame
from memory_provider.errors import DAPRequestError

logger = logging.getLogger(__name__)


class DebugSession:
    """A debug session talking to a debug adapter."""

    def __init__(self, send_message: Callable[[dict], dict], session_id: str = "debug"):
        """
        Initialize the DebugSession.

        :param send_message: Callable sending a request dict and returning the response dict.
        :param session_id: Identifier of the session.
        """
        self.id = session_id
        self._send_message = send_message
        self._seq = itertools.count(1)
        self._state_lock = threading.Lock()
        self._stopped_thread_id: int | None = None
        self._current_frame: StackFrame | None = None
        self._stop_generation = 0  # bumped on every stop and continue

    def send_request(self, command: str, arguments: dict | None = None) -> DAPResponse:
        """
        Send a request and wait for its response.

        :param command: The DAP command.
        :param arguments: The command arguments.
        :return: The successful response.
        :raises DAPRequestError: If the adapter rejects the request or answers another one.
        """
        request = DAPRequest(seq=next(self._seq), command=command, arguments=arguments)
        logger.debug("Session %s sending request: %s", self.id, request.to_dict())

        response = DAPResponse.from_dict(self._send_message(request.to_dict()))
        if response.request_seq != request.seq:
            logger.warning(
                "Session %s: response to request %s received for request %s",
                self.id,
                response.request_seq,
                request.seq,
            )
            raise DAPRequestError(
                command,
                f"Response to request {response.request_seq} received for request {request.seq}",
            )
        if not response.success:
            logger.debug("Request '%s' failed: %s", command, response.message)
            raise DAPRequestError(command, response.message)
        return response

    def send_custom_request(self, command: str, arguments: dict | None = None) -> DAPResponse:
        """Send an adapter-specific request, such as `cdt-gdb-adapter/Memory`."""
        return self.send_request(command, arguments)

    def get_stack_frames(self, thread_id: int) -> list[StackFrame]:
        """
        Fetch the call stack of a thread.

        :param thread_id: ID of the thread.
        :return: Frames, innermost first.
        """
        response = self.send_request("stackTrace", {"threadId": thread_id})
        return [
            StackFrame(self, thread_id, raw) for raw in response.body.get("stackFrames", [])
        ]

    @property
    def current_frame(self) -> StackFrame | None:
        """
        The selected stack frame.

        When none was selected explicitly, this is the top frame of the thread
        that stopped last. It is None while the program is running.
        """
        while True:
            with self._state_lock:
                frame = self._current_frame
                thread_id = self._stopped_thread_id
                generation = self._stop_generation
            if frame is not None or thread_id is None:
                return frame

            frames = self.get_stack_frames(thread_id)

            with self._state_lock:
                if self._stop_generation != generation:
                    # the program moved while the stack was fetched
                    continue
                if not frames:
                    return None
                if self._current_frame is None:
                    self._current_frame = frames[0]
                return self._current_frame

    def select_frame(self, frame: StackFrame | None):
        """Select the frame that `current_frame` reports."""
        with self._state_lock:
            self._current_frame = frame

    def handle_stopped(self, thread_id: int):
        """
        Record that a thread stopped. The frame is resolved on next access.

        :param thread_id: ID of the stopped thread.
        """
        logger.debug("Session %s: thread %s stopped", self.id, thread_id)
        with self._state_lock:
            self._stop_generation += 1
            self._stopped_thread_id = thread_id
            self._current_frame = None

    def handle_continued(self):
        """Record that the program resumed; frames are no longer valid."""
        logger.debug("Session %s: execution continued", self.id)
        with self._state_lock:
            self._stop_generation += 1
            self._stopped_thread_id = None
            self._current_frame = None


class DebugSessionManager:
    """Keeps the known debug sessions and the current one."""

    def __init__(self):
        self._sessions: dict[str, DebugSession] = {}
        self._current_session: DebugSession | None = None

    @property
    def sessions(self) -> list[DebugSession]:
        return list(self._sessions.values())

    @property
    def current_session(self) -> DebugSession | None:
        return self._current_session

    @current_session.setter
    def current_session(self, session: DebugSession | None):
        if session is not None and self._sessions.get(session.id) is not session:
            self._register(session)
        self._current_session = session

    def add_session(self, session: DebugSession):
        """
        Register a session. The first registered session becomes current.

        :param session: The session to add.
        :raises ValueError: If another session with the same id is registered.
        """
        if self._sessions.get(session.id) is not session:
            self._register(session)
        if self._current_session is None:
            self._current_session = session

    def _register(self, session: DebugSession):
        if session.id in self._sessions:
            raise ValueError(f"A debug session with id '{session.id}' is already registered")
        self._sessions[session.id] = session

    def remove_session(self, session_id: str):
        """
        Forget a session. If it was current, another known session (if any) takes its place.

        :param session_id: Identifier of the session to remove.
        """
        session = self._sessions.pop(session_id, None)
        if session is not None and session is self._current_session:
            self._current_session = next(iter(self._sessions.values()), None)
