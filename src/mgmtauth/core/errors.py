class ProtocolError(Exception):
    """Control channel traffic violated the management protocol."""

class SequencingError(ProtocolError):
    """An environment line arrived while no client id was tracked."""

class ManagementConnectionError(ProtocolError):
    """The control connection is missing or a write to it failed."""

class ConfigError(ValueError):
    pass

class VerifierTimeout(TimeoutError):
    pass
