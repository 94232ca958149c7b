"""Tests for the precompiled management line rules."""

import pytest

from mgmtauth.protocol.rules import NO_MATCH, RULES, Matched, MatchedWithError, NoMatch, compile_rules


def test_no_match_is_singleton():
    assert NoMatch() is NO_MATCH
    assert repr(NO_MATCH) == "NO_MATCH"


def test_rules_are_ordered_by_priority():
    assert [r.name for r in RULES.ordered()] == ["reauth", "connect", "username", "password", "env_end"]


def test_compile_rules_returns_fresh_table():
    assert compile_rules() is not RULES
    assert compile_rules().connect.pattern.pattern == RULES.connect.pattern.pattern


@pytest.mark.parametrize("rule, line, groups", [
    ("reauth", ">CLIENT:REAUTH,10,2", ("10", "2")),
    ("connect", ">CLIENT:CONNECT,0,0", ("0", "0")),
    ("username", ">CLIENT:ENV,username=", ("",)),
    ("password", ">CLIENT:ENV,password=p w", ("p w",)),
    ("env_end", ">CLIENT:ENV,END", ()),
])
def test_rule_matches(rule, line, groups):
    result = getattr(RULES, rule).match(line)
    assert result == Matched(groups)


@pytest.mark.parametrize("line", [
    ">CLIENT:CONNECT,1,1,extra",
    " >CLIENT:CONNECT,1,1",
    ">CLIENT:ENV,END ",
    ">CLIENT:ENV,ENDX",
    ">CLIENT:DISCONNECT,1",
])
def test_near_misses_do_not_match(line):
    assert all(rule.match(line) is NO_MATCH for rule in RULES.ordered())


def test_connect_and_reauth_are_distinct():
    assert RULES.reauth.match(">CLIENT:CONNECT,1,1") is NO_MATCH
    assert RULES.connect.match(">CLIENT:REAUTH,1,1") is NO_MATCH


def test_matched_with_error_carries_exception():
    err = ValueError("boom")
    assert MatchedWithError(err).error is err
