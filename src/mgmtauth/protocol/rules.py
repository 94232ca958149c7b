from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Tuple, Union

from ..core.constants import (
    RE_CLIENT_REAUTH, RE_CLIENT_CONNECT,
    RE_ENV_USERNAME, RE_ENV_PASSWORD, RE_ENV_END,
)

class NoMatch:
    """The line is not for this rule."""
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_MATCH"

NO_MATCH = NoMatch()

@dataclass(frozen=True)
class Matched:
    groups: Tuple[str, ...] = ()

@dataclass(frozen=True)
class MatchedWithError:
    error: Exception

MatchResult = Union[NoMatch, Matched, MatchedWithError]

@dataclass(frozen=True)
class LineRule:
    name: str
    pattern: "re.Pattern[str]"

    @classmethod
    def compile(cls, name: str, expr: str) -> "LineRule":
        return cls(name=name, pattern=re.compile(expr))

    def match(self, line: str) -> MatchResult:
        m = self.pattern.match(line)
        if m is None:
            return NO_MATCH
        return Matched(m.groups())

@dataclass(frozen=True)
class LineRules:
    reauth: LineRule
    connect: LineRule
    username: LineRule
    password: LineRule
    env_end: LineRule

    def ordered(self) -> Tuple[LineRule, ...]:
        return (self.reauth, self.connect, self.username, self.password, self.env_end)

def compile_rules() -> LineRules:
    return LineRules(
        reauth=LineRule.compile("reauth", RE_CLIENT_REAUTH),
        connect=LineRule.compile("connect", RE_CLIENT_CONNECT),
        username=LineRule.compile("username", RE_ENV_USERNAME),
        password=LineRule.compile("password", RE_ENV_PASSWORD),
        env_end=LineRule.compile("env_end", RE_ENV_END),
    )

# Compiled once at import; a broken expression fails here, not per line.
RULES = compile_rules()
