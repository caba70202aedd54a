"""Shared pytest fixtures for memory provider tests."""

from unittest.mock import Mock

import pytest

from memory_provider.dap.session import DebugSession, DebugSessionManager
from memory_provider.gdb.backend import GDBBackend
from memory_provider.gdb.memory import MemoryManager
from memory_provider.gdb.request_handler import GDBRequestHandler
from memory_provider.gdb.stack_trace import StackTraceManager
from memory_provider.gdb.variables import VariableManager
from memory_provider.provider import MemoryProvider


class FakeAdapter:
    """A debug adapter answering from canned bodies and recording every request."""

    def __init__(self):
        self.requests: list[dict] = []
        self.bodies: dict = {}
        self.failures: dict = {}
        self.evaluations: dict = {}

    def __call__(self, request: dict) -> dict:
        self.requests.append(request)
        command = request["command"]
        response = {
            "type": "response",
            "request_seq": request["seq"],
            "command": command,
            "success": True,
            "message": "",
            "body": {},
        }
        if command in self.failures:
            response["success"] = False
            response["message"] = self.failures[command]
        elif command == "evaluate":
            expression = request["arguments"]["expression"]
            response["body"] = {"result": self.evaluations[expression], "variablesReference": 0}
        elif command == "variables":
            ref = request["arguments"]["variablesReference"]
            response["body"] = {"variables": self.bodies[("variables", ref)]}
        else:
            response["body"] = self.bodies[command]
        return response

    def commands(self) -> list[str]:
        return [request["command"] for request in self.requests]

    def expressions(self) -> list[str]:
        return [
            request["arguments"]["expression"]
            for request in self.requests
            if request["command"] == "evaluate"
        ]


@pytest.fixture
def adapter() -> FakeAdapter:
    """Provide a fake debug adapter."""
    return FakeAdapter()


@pytest.fixture
def session(adapter: FakeAdapter) -> DebugSession:  # noqa: WPS442
    """Provide a DebugSession talking to the fake adapter."""
    return DebugSession(adapter, session_id="test")


@pytest.fixture
def session_manager(session: DebugSession) -> DebugSessionManager:  # noqa: WPS442
    """Provide a session manager whose current session is the test session."""
    manager = DebugSessionManager()
    manager.add_session(session)
    return manager


@pytest.fixture
def provider(session_manager: DebugSessionManager) -> MemoryProvider:  # noqa: WPS442
    """Provide a MemoryProvider on top of the test session."""
    return MemoryProvider(session_manager)


@pytest.fixture
def backend_mock() -> Mock:
    """Provide a mock of the GDBBackend interface with real managers attached."""
    backend = Mock(spec=GDBBackend)
    backend.stack_trace_manager = StackTraceManager(backend)
    backend.variable_manager = VariableManager(backend)
    backend.memory_manager = MemoryManager(backend)
    return backend


@pytest.fixture
def request_handler(backend_mock: Mock) -> GDBRequestHandler:  # noqa: WPS442
    """Provide a GDBRequestHandler using a mocked backend."""
    return GDBRequestHandler(backend_mock)
