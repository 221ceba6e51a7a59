"""Best-effort scanning of the raw command line.

Runs before the driver's flags are known, so nothing here may depend on a
parser. Every function takes the argument tuple explicitly.
"""
from typing import Optional, Sequence


def lookup_debug(argv: Sequence[str]) -> bool:
    """True iff ``--debug`` appears anywhere on the command line."""
    return "--debug" in argv


def find_flag(argv: Sequence[str], flag_name: str) -> Optional[str]:
    """Value of ``flag_name`` (e.g. ``--driver``) or its short alias (``-d``).

    Accepts ``--driver foo``, ``-d foo``, ``--driver=foo`` and ``-d=foo``.
    Returns None when the flag is absent and "" when it is the last token.
    The first occurrence wins.
    """
    short_name = flag_name[1:3]
    for i, arg in enumerate(argv):
        if arg in (flag_name, short_name):
            if i + 1 < len(argv):
                return argv[i + 1]
            return ""
        for name in (flag_name, short_name):
            if arg.startswith(name + "="):
                return arg.partition("=")[2]
    return None


def lookup_flag(argv: Sequence[str], flag_name: str) -> str:
    """Like :func:`find_flag` but "" for an absent flag."""
    return find_flag(argv, flag_name) or ""


def trailing_argument(argv: Sequence[str]) -> str:
    """Last non-flag token of the command line, the cluster name in ``create ... NAME``."""
    for arg in reversed(argv):
        if not arg.startswith("-"):
            return arg
    return ""
