from __future__ import annotations
import sys

from .rules import NO_MATCH, RULES, Matched, compile_rules

# (rule name, line it must recognize, expected groups)
SAMPLES = [
    ("reauth", ">CLIENT:REAUTH,12,3", ("12", "3")),
    ("connect", ">CLIENT:CONNECT,5,0", ("5", "0")),
    ("username", ">CLIENT:ENV,username=alice", ("alice",)),
    ("password", ">CLIENT:ENV,password=s3cr=t", ("s3cr=t",)),
    ("env_end", ">CLIENT:ENV,END", ()),
]

FOREIGN_LINES = [
    ">STATE:1234567890,CONNECTED,SUCCESS,10.8.0.1,,,,",
    ">CLIENT:ENV,common_name=alice",
    ">CLIENT:ESTABLISHED,5",
    ">BYTECOUNT_CLI:5,100,200",
]

EXPECTED_ORDER = ("reauth", "connect", "username", "password", "env_end")

def security_self_check(logger):
    checks = []

    checks.append(("Python >= 3.9", sys.version_info >= (3, 9), "Python 3.9+ required"))

    try:
        compile_rules()
        checks.append(("Line patterns compile", True, ""))
    except Exception as e:
        checks.append(("Line patterns compile", False, f"pattern error: {e}"))

    order = tuple(rule.name for rule in RULES.ordered())
    checks.append(("Rule priority order", order == EXPECTED_ORDER, f"unexpected order {order}"))

    by_name = {rule.name: rule for rule in RULES.ordered()}
    for name, line, groups in SAMPLES:
        result = by_name[name].match(line)
        ok = isinstance(result, Matched) and result.groups == groups
        checks.append((f"Rule '{name}' recognizes sample", ok, f"{line!r} not recognized"))

    stray = [line for line in FOREIGN_LINES if any(r.match(line) is not NO_MATCH for r in RULES.ordered())]
    checks.append(("Foreign lines ignored", not stray, f"matched foreign lines: {stray}"))

    all_ok = True
    for name, ok, reason in checks:
        all_ok = all_ok and ok
        if ok:
            logger.info("security_check", check=name, status="OK")
        else:
            logger.error("security_check", check=name, status="FAILED", reason=reason)

    if not all_ok:
        raise RuntimeError("Security self-check failed")

    logger.info("security_self_check_passed")
    return True
