"""Utility functions for GDB response handling."""

from __future__ import annotations

from memory_provider.common import CommandResult


def is_gdb_responses_successful_with_message(responses: list[dict]) -> CommandResult:
    """
    Parse GDB responses for errors.

    :param responses: List of responses from GDB.
    :return: Tuple (success, error_message).
    """
    for resp in responses:
        if resp.get("type") == "result" and resp.get("message") == "error":
            error_message = (resp.get("payload") or {}).get("msg", "Unknown error")
            return CommandResult(False, f"Error from GDB: {error_message}")
    if not responses:
        return CommandResult(False, "No response from GDB")
    return CommandResult(True, "")


def is_success_response(resp: dict) -> bool:
    """
    Check if a GDB response indicates successful command execution.

    :param resp: Single response dictionary from GDB
    :return: True if the response indicates success (type=result and message=done),
             False otherwise
    """
    return resp.get("type") == "result" and resp.get("message") == "done"


def get_success_payload(responses: list[dict]) -> dict | None:
    """Return the payload of the first successful result record, if any."""
    for resp in responses:
        if is_success_response(resp):
            return resp.get("payload") or {}
    return None


def quote_mi_string(text: str) -> str:
    """Quote an expression as a GDB/MI c-string argument."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
