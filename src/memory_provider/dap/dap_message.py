"""
Module for building requests and responses of the Debug Adapter Protocol (DAP).

`DAPRequest` is what a session sends to a debug adapter, `DAPResponse` is what
comes back. The GDB request handler builds its answers with `DAPResponse` too,
so both ends of the in-process channel share the same message shape.
"""

from __future__ import annotations


class DAPRequest:
    """A request in the Debug Adapter Protocol (DAP)."""

    def __init__(self, seq: int, command: str, arguments: dict | None = None):
        """
        Initialize a DAPRequest object.

        :param seq: Sequence number of the request.
        :param command: The command to execute.
        :param arguments: Arguments of the command (default: None).
        """
        self.type = "request"
        self.seq = seq
        self.command = command
        self.arguments = arguments or {}

    def to_dict(self) -> dict:
        """
        Convert the DAPRequest object to a dictionary.

        :return: A dictionary representation of the request.
        """
        return {
            "type": self.type,
            "seq": self.seq,
            "command": self.command,
            "arguments": self.arguments,
        }


class DAPResponse:
    """
    A unified class for DAP responses.

    This class represents a response in the Debug Adapter Protocol (DAP).
    """

    def __init__(
        self,
        request: dict,
        command: str,
        success: bool = True,
        body: dict | None = None,
        message: str = "",
    ):  # pylint: disable=too-many-arguments too-many-positional-arguments
        """
        Initialize a DAPResponse object.

        :param request: JSON request containing a sequence number.
        :param command: The name of the command associated with this response.
        :param success: Indicates whether the command was successful (default: True).
        :param body: Response body as a dictionary (default: None).
        :param message: Error message if the response is unsuccessful (default: empty string).
        """
        self.type = "response"
        self.request_seq = request.get("seq")
        self.command = command
        self.success = success
        self.body = body or {}
        self.message = message

    @classmethod
    def from_dict(cls, message: dict) -> DAPResponse:
        """
        Build a DAPResponse from a response received from an adapter.

        :param message: JSON response as a dictionary.
        :return: The parsed response.
        """
        return cls(
            request={"seq": message.get("request_seq")},
            command=message.get("command", ""),
            success=bool(message.get("success", False)),
            body=message.get("body"),
            message=message.get("message") or "",
        )

    def to_dict(self) -> dict:
        """
        Convert the DAPResponse object to a dictionary.

        :return: A dictionary representation of the response.
        """
        return {
            "type": self.type,
            "request_seq": self.request_seq,
            "success": self.success,
            "command": self.command,
            "body": self.body,
            "message": self.message,
        }
