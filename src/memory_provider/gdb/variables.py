"""
Module for listing frame variables and evaluating expressions in GDB.

Expressions are evaluated through temporary variable objects, whose value
is formatted the way debug adapters display it (a pointer is shown as a bare
`0x...` address, unlike `-data-evaluate-expression`).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from memory_provider.gdb.backend import GDBBackend

from memory_provider.common import VAR_REF_NO_NESTING, CommandResult
from memory_provider.gdb.gdb_utils import (
    get_success_payload,
    is_gdb_responses_successful_with_message,
    quote_mi_string,
)


class VariableManager:
    """Lists variables and evaluates expressions using GDB."""

    def __init__(self, backend: GDBBackend):
        """
        Initialize the VariableManager.

        :param backend: An instance of GDBBackend for executing GDB commands.
        """
        self.backend: GDBBackend = backend

    def get_local_variables(self, thread_id: int, level: int) -> tuple[CommandResult, list[dict]]:
        """
        Fetch the arguments and locals of a frame.

        :param thread_id: ID of the thread.
        :param level: Level of the frame in the thread's stack.
        :return: The command result and DAP variables, in GDB's order.
        """
        cmd = f"-stack-list-variables --thread {thread_id} --frame {level} --simple-values"
        responses = self.backend.send_command_and_get_result(cmd)
        result = is_gdb_responses_successful_with_message(responses)
        if not result.success:
            return result, []

        payload = get_success_payload(responses) or {}
        variables = [
            {
                "name": var["name"],
                "value": var.get("value", ""),
                "type": var.get("type", ""),
                "variablesReference": VAR_REF_NO_NESTING,
            }
            for var in payload.get("variables", [])
            if var.get("name")
        ]
        return result, variables

    def evaluate(
        self,
        expression: str,
        thread_id: int | None = None,
        level: int | None = None,
    ) -> tuple[CommandResult, dict]:
        """
        Evaluate an expression, in a given frame if one is specified.

        :param expression: The expression to evaluate.
        :param thread_id: ID of the thread, or None for the selected one.
        :param level: Level of the frame, or None for the selected one.
        :return: The command result and a dict with `value` and `type`.
        """
        frame_options = ""
        if thread_id is not None and level is not None:
            frame_options = f" --thread {thread_id} --frame {level}"

        cmd = f"-var-create{frame_options} - * {quote_mi_string(expression)}"
        responses = self.backend.send_command_and_get_result(cmd)
        result = is_gdb_responses_successful_with_message(responses)
        if not result.success:
            return result, {}

        payload = get_success_payload(responses) or {}
        gdb_var_name = payload.get("name", "")
        if gdb_var_name:
            self.safe_var_delete(gdb_var_name)

        return result, {
            "value": payload.get("value", ""),
            "type": payload.get("type", ""),
        }

    def safe_var_delete(self, gdb_name: str):
        """
        Delete a GDB variable object.

        :param gdb_name: Name of the variable object in GDB.
        """
        self.backend.send_command_and_get_result(f"-var-delete {gdb_name}")
