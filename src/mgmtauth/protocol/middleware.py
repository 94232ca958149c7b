from __future__ import annotations

from typing import Any, Callable, Optional, Tuple

import structlog

from ..core.constants import CMD_STATE_OFF, CMD_STATE_ON, DenyReason
from ..core.errors import ManagementConnectionError, SequencingError
from ..core.wire import approve_command, deny_command, write_command
from ..verifiers import Verifier
from .rules import NO_MATCH, RULES, LineRule, LineRules, Matched, MatchedWithError, MatchResult
from .state import Phase

class AuthMiddleware:
    """Answers OpenVPN client-auth requests on a management connection.

    One instance serves one control connection and must be fed lines in
    arrival order by a single reader. Each ``>CLIENT:CONNECT`` or
    ``>CLIENT:REAUTH`` event opens a round; the ``>CLIENT:ENV,END`` marker
    closes it with exactly one ``client-auth-nt`` or ``client-deny`` command.
    """

    def __init__(self, verifier: Verifier, logger=None, rules: LineRules = RULES):
        self.verifier = verifier
        self.logger = logger or structlog.get_logger()
        self._connection: Any = None

        self._phase = Phase.IDLE
        self._client_id: Optional[int] = None
        self._key_id: Optional[int] = None
        self._username = ""
        self._password = ""

        # (rule, handler, needs open round), in priority order
        self._chain: Tuple[Tuple[LineRule, Callable[[Matched], MatchResult], bool], ...] = (
            (rules.reauth, self._on_round_start, False),
            (rules.connect, self._on_round_start, False),
            (rules.username, self._on_username, True),
            (rules.password, self._on_password, True),
            (rules.env_end, self._on_env_end, True),
        )

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def client_id(self) -> Optional[int]:
        return self._client_id

    @property
    def key_id(self) -> Optional[int]:
        return self._key_id

    @property
    def pending_username(self) -> str:
        return self._username

    def start(self, connection: Any) -> None:
        self._connection = connection
        write_command(connection, CMD_STATE_ON)
        self.logger.info("auth_middleware_started")

    def stop(self) -> None:
        if self._connection is None:
            raise ManagementConnectionError("auth middleware was never started")
        write_command(self._connection, CMD_STATE_OFF)
        self.logger.info("auth_middleware_stopped")

    def reset(self) -> None:
        self._username = ""
        self._password = ""
        self._client_id = None
        self._key_id = None
        self._phase = Phase.IDLE

    def consume_line(self, line: str) -> bool:
        """Offer one management line; return True if this middleware owns it.

        Raises SequencingError for an ENV credential line with no tracked
        client id. Verifier failures are answered on the channel, not raised.
        """
        line = line.rstrip("\r\n")
        for rule, handler, needs_round in self._chain:
            if needs_round and self._phase is not Phase.AWAITING_CREDENTIALS:
                return False

            match = rule.match(line)
            if match is NO_MATCH:
                continue

            result = handler(match)
            if isinstance(result, MatchedWithError):
                raise result.error
            return True

        return False

    def _on_round_start(self, match: Matched) -> MatchResult:
        self.reset()
        self._phase = Phase.AWAITING_CREDENTIALS
        self._client_id = int(match.groups[0])
        self._key_id = int(match.groups[1])
        self.logger.debug("client_auth_round_opened", client_id=self._client_id, key_id=self._key_id)
        return match

    def _on_username(self, match: Matched) -> MatchResult:
        if self._client_id is None:
            return MatchedWithError(SequencingError("wrong auth state, no client id"))
        self._username = match.groups[0]
        return match

    def _on_password(self, match: Matched) -> MatchResult:
        if self._client_id is None:
            return MatchedWithError(SequencingError("wrong auth state, no client id"))
        self._password = match.groups[0]
        return match

    def _on_env_end(self, match: Matched) -> MatchResult:
        self._authenticate()
        return match

    def _authenticate(self) -> None:
        client_id, key_id = self._client_id, self._key_id
        username, password = self._username, self._password
        # the round is closed whatever the outcome
        self.reset()

        if not username or not password:
            self._respond(deny_command(client_id, key_id, DenyReason.MISSING_CREDENTIALS))
            return

        self.logger.info("authenticating_client", username=username, client_id=client_id, key_id=key_id)

        try:
            authenticated = self.verifier(username, password)
            if not isinstance(authenticated, bool):
                raise TypeError(f"verifier returned {type(authenticated).__name__}, expected bool")
        except Exception as e:
            self.logger.error("authentication_error", error=str(e), client_id=client_id, key_id=key_id)
            self._respond(deny_command(client_id, key_id, DenyReason.INTERNAL_ERROR))
            return

        if authenticated is True:
            self.logger.info("client_approved", username=username, client_id=client_id, key_id=key_id)
            self._respond(approve_command(client_id, key_id))
        else:
            self.logger.warning("client_denied", username=username, client_id=client_id, key_id=key_id)
            self._respond(deny_command(client_id, key_id, DenyReason.WRONG_CREDENTIALS))

    def _respond(self, command: str) -> None:
        try:
            write_command(self._connection, command)
        except ManagementConnectionError as e:
            self.logger.error("management_write_failed", error=str(e))
