from __future__ import annotations
import hmac
import threading
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Union

from .core.errors import ConfigError, VerifierTimeout

Verifier = Callable[[str, str], bool]

_DUMMY_PASSWORD = "\x00" * 32

class StaticCredentialsVerifier:
    """Checks credentials against a fixed username -> password table."""

    def __init__(self, table: Mapping[str, str]):
        self._table: Dict[str, str] = dict(table)

    def __len__(self) -> int:
        return len(self._table)

    def __call__(self, username: str, password: str) -> bool:
        known = username in self._table
        expected = self._table.get(username, _DUMMY_PASSWORD)
        # compare even for unknown users so timing does not leak membership
        ok = hmac.compare_digest(expected.encode("utf-8"), password.encode("utf-8"))
        return known and ok

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "StaticCredentialsVerifier":
        """Load ``username:password`` lines; blank lines and ``#`` comments are skipped."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read credentials file {path}: {e}") from e

        table: Dict[str, str] = {}
        for lineno, raw in enumerate(text.splitlines(), start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            username, sep, password = line.partition(":")
            if not sep or not username or not password:
                raise ConfigError(f"{path}:{lineno}: expected username:password")
            if username in table:
                raise ConfigError(f"{path}:{lineno}: duplicate user {username!r}")
            table[username] = password
        return cls(table)

def with_timeout(verifier: Verifier, timeout_s: Optional[float]) -> Verifier:
    """Bound a verifier call to ``timeout_s`` seconds.

    The call runs on a daemon thread; on timeout VerifierTimeout is raised and
    the thread is abandoned. ``None`` returns the verifier unchanged.
    """
    if timeout_s is None:
        return verifier
    if timeout_s <= 0:
        raise ValueError("timeout_s must be positive")

    def bounded(username: str, password: str) -> bool:
        outcome: Dict[str, object] = {}

        def run():
            try:
                outcome["value"] = verifier(username, password)
            except BaseException as e:
                outcome["error"] = e

        worker = threading.Thread(target=run, name="mgmtauth-verifier", daemon=True)
        worker.start()
        worker.join(timeout_s)
        if worker.is_alive():
            raise VerifierTimeout(f"verifier did not answer within {timeout_s}s")
        if "error" in outcome:
            raise outcome["error"]
        value = outcome.get("value")
        if not isinstance(value, bool):
            raise TypeError(f"verifier returned {type(value).__name__}, expected bool")
        return value

    return bounded
