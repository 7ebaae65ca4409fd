# snaphost/app/program.py
"""
Helpers for G-code program files before upload.
"""
from __future__ import annotations

import re
from typing import List, Optional

from snaphost.core.errors import InvalidArgumentError

_ESTIMATED_TIME_RE = re.compile(rb"^;estimated_time(?:\(s\))?\s*[:=]\s*([0-9.eE+-]+)")


def estimated_time_s(data: bytes) -> Optional[float]:
    """
    Return the `;estimated_time(s): N` header value of a program, or None
    if the file carries none.
    """
    for line in data.split(b"\n"):
        m = _ESTIMATED_TIME_RE.match(line)
        if m:
            try:
                return float(m.group(1))
            except ValueError:
                return None
    return None


def _parse_range(section: str, n_lines: int) -> range:
    parts = section.split("-")
    if len(parts) > 2 or not parts[0].strip():
        raise InvalidArgumentError(f"Invalid line range {section!r}.", hint="Use <n> or <n>-<m> (or <n>- for to-end).")

    try:
        start = int(parts[0])
    except ValueError:
        raise InvalidArgumentError(f"Invalid line number in {section!r}.") from None
    if start < 1 or start > n_lines:
        raise InvalidArgumentError(f"Line range {section!r} is out of bounds (length={n_lines}).")

    end = start
    if len(parts) == 2:
        if parts[1].strip() == "":
            end = n_lines
        else:
            try:
                end = int(parts[1])
            except ValueError:
                raise InvalidArgumentError(f"Invalid line number in {section!r}.") from None
        if end < start:
            raise InvalidArgumentError(f"Line range {section!r} must have end >= start.")
        if end > n_lines:
            raise InvalidArgumentError(f"Line range {section!r} is beyond the program length {n_lines}.")

    return range(start - 1, end)


def comment_out_lines(data: bytes, ranges: str) -> bytes:
    """
    Comment out (prefix with ';') the 1-based lines named by `ranges`, a
    comma separated list of `n`, `n-m` or `n-`. Empty lines and lines that
    are already comments are left alone.
    """
    lines: List[bytes] = data.split(b"\n")
    for section in ranges.split(","):
        for i in _parse_range(section.strip(), len(lines)):
            line = lines[i]
            if not line or line.startswith(b";"):
                continue
            lines[i] = b";" + line
    return b"\n".join(lines)
