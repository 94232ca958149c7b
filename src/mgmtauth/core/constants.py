from __future__ import annotations

# Inbound client events. Ids are decimal and may span several digits.
RE_CLIENT_REAUTH = r"^>CLIENT:REAUTH,(\d+),(\d+)$"
RE_CLIENT_CONNECT = r"^>CLIENT:CONNECT,(\d+),(\d+)$"
RE_ENV_USERNAME = r"^>CLIENT:ENV,username=(.*)$"
RE_ENV_PASSWORD = r"^>CLIENT:ENV,password=(.*)$"
RE_ENV_END = r"^>CLIENT:ENV,END$"

# Outbound commands
CMD_STATE_ON = "state on"
CMD_STATE_OFF = "state off"
CMD_CLIENT_AUTH_NT = "client-auth-nt {client_id} {key_id}"
CMD_CLIENT_DENY = "client-deny {client_id} {key_id} {message}"

LINE_TERMINATOR = "\n"
PASSWORD_PROMPT = "ENTER PASSWORD:"

class DenyReason:
    MISSING_CREDENTIALS = "missing username or password"
    INTERNAL_ERROR = "internal error"
    WRONG_CREDENTIALS = "wrong username or password"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7505
DEFAULT_LOG_LEVEL = "info"
LOG_LEVELS = ("debug", "info", "warning", "error")
ENV_PREFIX = "MGMTAUTH_"

MAX_LINE_BYTES = 64 * 1024
READ_CHUNK_BYTES = 4096
