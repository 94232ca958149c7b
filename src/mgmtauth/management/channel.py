from __future__ import annotations
import socket
from typing import Any, BinaryIO, Iterable, Iterator, List, Optional, Protocol, Sequence, Union

import structlog

from ..core.config import ManagementSettings
from ..core.constants import MAX_LINE_BYTES, PASSWORD_PROMPT, READ_CHUNK_BYTES
from ..core.errors import ManagementConnectionError, ProtocolError
from ..core.wire import write_command

_REDACTED_PREFIX = ">CLIENT:ENV,password="

class LineConsumer(Protocol):
    def start(self, connection: Any) -> None: ...
    def stop(self) -> None: ...
    def consume_line(self, line: str) -> bool: ...

def redact(line: str) -> str:
    if line.startswith(_REDACTED_PREFIX):
        return _REDACTED_PREFIX + "[REDACTED]"
    return line

class PrefixedReader:
    """Yields lines from already-read bytes, then from the stream."""

    def __init__(self, prefix: bytes, stream: BinaryIO):
        self.prefix = prefix
        self.stream = stream

    def __iter__(self) -> Iterator[bytes]:
        if self.prefix:
            lines = self.prefix.splitlines(keepends=True)
            self.prefix = b""
            # a partial last line continues in the stream
            if not lines[-1].endswith(b"\n"):
                lines[-1] += self.stream.readline()
            yield from lines
        yield from self.stream

    def close(self) -> None:
        self.stream.close()

class ManagementChannel:
    """Reads management interface lines and hands each to the first consumer that takes it."""

    def __init__(
        self,
        reader: Iterable[Union[bytes, str]],
        writer: Any,
        consumers: Sequence[LineConsumer],
        logger=None,
        strict: bool = False,
        sock: Optional[socket.socket] = None,
    ):
        self.reader = reader
        self.writer = writer
        self.consumers: List[LineConsumer] = list(consumers)
        self.logger = logger or structlog.get_logger()
        self.strict = strict
        self._sock = sock
        self.stats = {"lines": 0, "consumed": 0, "unconsumed": 0, "protocol_errors": 0}

    @classmethod
    def connect(cls, settings: ManagementSettings, consumers: Sequence[LineConsumer], logger=None) -> "ManagementChannel":
        logger = logger or structlog.get_logger()
        try:
            sock = socket.create_connection((settings.host, settings.port))
        except OSError as e:
            raise ManagementConnectionError(f"cannot connect to {settings.host}:{settings.port}: {e}") from e

        logger.info("management_connected", host=settings.host, port=settings.port)
        leftover = b""
        if settings.password is not None:
            try:
                leftover = _authenticate_interface(sock, settings.password)
            except ProtocolError:
                sock.close()
                raise
            logger.info("management_password_sent")

        return cls(
            reader=PrefixedReader(leftover, sock.makefile("rb")),
            writer=sock,
            consumers=consumers,
            logger=logger,
            strict=settings.strict,
            sock=sock,
        )

    def serve(self) -> int:
        """Start every consumer, pump lines until EOF, then stop them."""
        try:
            self.start()
            return self.run()
        finally:
            self.stop()
            self.close()

    def start(self) -> None:
        for consumer in self.consumers:
            consumer.start(self.writer)

    def stop(self) -> None:
        for consumer in self.consumers:
            try:
                consumer.stop()
            except ManagementConnectionError as e:
                self.logger.warning("consumer_stop_failed", consumer=type(consumer).__name__, error=str(e))

    def close(self) -> None:
        close_reader = getattr(self.reader, "close", None)
        if close_reader is not None:
            close_reader()
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def run(self) -> int:
        for raw in self.reader:
            if isinstance(raw, bytes):
                if len(raw) > MAX_LINE_BYTES:
                    self.logger.warning("line_too_long", size=len(raw))
                    continue
                raw = raw.decode("utf-8", errors="replace")
            line = raw.rstrip("\r\n")
            if not line:
                continue
            self.dispatch(line)

        self.logger.info("management_eof", **self.stats)
        return self.stats["lines"]

    def dispatch(self, line: str) -> bool:
        self.stats["lines"] += 1
        for consumer in self.consumers:
            try:
                consumed = consumer.consume_line(line)
            except ProtocolError as e:
                self.stats["protocol_errors"] += 1
                self.logger.error("protocol_error", consumer=type(consumer).__name__, error=str(e), line=redact(line))
                if self.strict:
                    raise
                return True

            if consumed:
                self.stats["consumed"] += 1
                return True

        self.stats["unconsumed"] += 1
        self.logger.debug("line_not_consumed", line=redact(line))
        return False

def _authenticate_interface(sock: socket.socket, password: str) -> bytes:
    """Answer the daemon's ``ENTER PASSWORD:`` prompt, which has no line terminator.

    Returns whatever followed the prompt in the last chunk read.
    """
    buf = b""
    prompt = PASSWORD_PROMPT.encode("ascii")
    while prompt not in buf:
        chunk = sock.recv(READ_CHUNK_BYTES)
        if not chunk:
            raise ManagementConnectionError("connection closed before password prompt")
        buf += chunk
        if len(buf) > MAX_LINE_BYTES:
            raise ProtocolError("no password prompt from management interface")
    write_command(sock, password)
    return buf.split(prompt, 1)[1]
