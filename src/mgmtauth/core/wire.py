from __future__ import annotations
from typing import Any

from .constants import CMD_CLIENT_AUTH_NT, CMD_CLIENT_DENY, LINE_TERMINATOR
from .errors import ManagementConnectionError

def approve_command(client_id: int, key_id: int) -> str:
    return CMD_CLIENT_AUTH_NT.format(client_id=client_id, key_id=key_id)

def deny_command(client_id: int, key_id: int, message: str) -> str:
    return CMD_CLIENT_DENY.format(client_id=client_id, key_id=key_id, message=message)

def write_command(connection: Any, command: str) -> None:
    """Write one newline-terminated command to a socket or file-like connection."""
    if connection is None:
        raise ManagementConnectionError("no control connection bound")

    data = (command + LINE_TERMINATOR).encode("utf-8")
    send = getattr(connection, "sendall", None) or connection.write
    try:
        send(data)
        flush = getattr(connection, "flush", None)
        if flush is not None:
            flush()
    except (OSError, ValueError) as e:
        raise ManagementConnectionError(f"write failed: {e}") from e
