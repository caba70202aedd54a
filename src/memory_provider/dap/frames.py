"""
Stack frame and scope model built on top of a `DebugSession`.

A frame lists its scopes with the `scopes` request, and every scope (or
structured variable) lists its children with the `variables` request. Large
indexed containers are split into `VariableGroup` paging nodes, the same way
IDE variable views present them, so the elements of a container are either
real `DebugVariable`s or synthetic groups.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memory_provider.dap.session import DebugSession

from memory_provider.common import CHUNK_SIZE, VAR_REF_NO_NESTING


class ExpressionContainer:
    """Base class for anything whose children are fetched with `variables`."""

    def __init__(
        self,
        session: DebugSession,
        variables_reference: int,
        named_variables: int = 0,
        indexed_variables: int = 0,
        start_of_variables: int = 0,
    ):  # pylint: disable=too-many-arguments too-many-positional-arguments
        self.session = session
        self.variables_reference = variables_reference
        self.named_variables = named_variables
        self.indexed_variables = indexed_variables
        self.start_of_variables = start_of_variables

    def has_elements(self) -> bool:
        """Check whether the container can be expanded."""
        return self.variables_reference != VAR_REF_NO_NESTING

    def get_elements(self) -> list[DebugVariable | VariableGroup]:
        """
        Fetch the children of this container.

        Children are re-fetched on every call. Elements with the same name
        collapse into one entry, keeping the position of the first.

        :return: Child variables, or paging groups for large indexed containers.
        """
        if not self.has_elements():
            return []

        elements: dict[str, DebugVariable | VariableGroup] = {}
        if self.named_variables:
            self._fetch(elements, "named")

        if self.indexed_variables:
            chunk_size = CHUNK_SIZE
            while self.indexed_variables > chunk_size * CHUNK_SIZE:
                chunk_size *= CHUNK_SIZE

            if self.indexed_variables > chunk_size:
                self._add_groups(elements, chunk_size)
            else:
                self._fetch(elements, "indexed", self.start_of_variables, self.indexed_variables)
        elif not self.named_variables:
            self._fetch(elements)

        return list(elements.values())

    def _add_groups(self, elements: dict, chunk_size: int):
        number_of_chunks = math.ceil(self.indexed_variables / chunk_size)
        for index in range(number_of_chunks):
            start = self.start_of_variables + index * chunk_size
            count = min(chunk_size, self.indexed_variables - index * chunk_size)
            group = VariableGroup(self.session, self.variables_reference, start, count)
            elements[group.name] = group

    def _fetch(
        self,
        elements: dict,
        filter_: str | None = None,
        start: int | None = None,
        count: int | None = None,
    ):
        arguments: dict = {"variablesReference": self.variables_reference}
        if filter_:
            arguments["filter"] = filter_
        if start is not None:
            arguments["start"] = start
        if count is not None:
            arguments["count"] = count

        response = self.session.send_request("variables", arguments)
        for raw in response.body.get("variables", []):
            variable = DebugVariable(self.session, raw)
            elements.setdefault(variable.name, variable)


class DebugVariable(ExpressionContainer):
    """A variable reported by the debug adapter."""

    def __init__(self, session: DebugSession, raw: dict):
        """
        Initialize the DebugVariable.

        :param session: The session the variable belongs to.
        :param raw: The DAP `Variable` object.
        """
        super().__init__(
            session,
            raw.get("variablesReference", VAR_REF_NO_NESTING),
            named_variables=raw.get("namedVariables", 0),
            indexed_variables=raw.get("indexedVariables", 0),
        )
        self.raw = raw

    @property
    def name(self) -> str:
        return self.raw["name"]

    @property
    def value(self) -> str:
        return self.raw.get("value", "")

    @property
    def type(self) -> str:
        return self.raw.get("type", "")

    def __repr__(self) -> str:
        return f"DebugVariable(name={self.name!r}, value={self.value!r})"


class VariableGroup(ExpressionContainer):
    """A synthetic node grouping a slice of indexed children, e.g. `[100..199]`."""

    def __init__(self, session: DebugSession, variables_reference: int, start: int, count: int):
        super().__init__(
            session,
            variables_reference,
            indexed_variables=count,
            start_of_variables=start,
        )
        self.name = f"[{start}..{start + count - 1}]"

    def __repr__(self) -> str:
        return f"VariableGroup(name={self.name!r})"


class Scope(ExpressionContainer):
    """A scope of a stack frame, such as locals or registers."""

    def __init__(self, session: DebugSession, raw: dict):
        """
        Initialize the Scope.

        :param session: The session the scope belongs to.
        :param raw: The DAP `Scope` object.
        """
        super().__init__(
            session,
            raw.get("variablesReference", VAR_REF_NO_NESTING),
            named_variables=raw.get("namedVariables", 0),
            indexed_variables=raw.get("indexedVariables", 0),
        )
        self.raw = raw

    @property
    def name(self) -> str:
        return self.raw.get("name", "")

    @property
    def expensive(self) -> bool:
        return bool(self.raw.get("expensive", False))


class StackFrame:
    """A stack frame of a stopped thread."""

    def __init__(self, session: DebugSession, thread_id: int, raw: dict):
        """
        Initialize the StackFrame.

        :param session: The session the frame belongs to.
        :param thread_id: ID of the thread owning the frame.
        :param raw: The DAP `StackFrame` object.
        """
        self.session = session
        self.thread_id = thread_id
        self.raw = raw

    @property
    def id(self) -> int:  # noqa: WPS125
        return self.raw["id"]

    @property
    def name(self) -> str:
        return self.raw.get("name", "")

    def get_scopes(self) -> list[Scope]:
        """
        Fetch the scopes of this frame.

        :return: Scopes in the order reported by the adapter.
        """
        response = self.session.send_request("scopes", {"frameId": self.id})
        return [Scope(self.session, raw) for raw in response.body.get("scopes", [])]

    def __repr__(self) -> str:
        return f"StackFrame(id={self.id!r}, name={self.name!r}, thread_id={self.thread_id!r})"
