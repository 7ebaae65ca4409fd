from __future__ import annotations

import pytest

from snaphost.app.program import comment_out_lines, estimated_time_s
from snaphost.core.errors import InvalidArgumentError

PROGRAM = b";header\n;estimated_time(s): 125.5\nG0 X1\n\nG0 X2\nG0 X3"


def test_estimated_time():
    assert estimated_time_s(PROGRAM) == 125.5
    assert estimated_time_s(b"G0 X0\n") is None


def test_comment_out_single_and_range():
    out = comment_out_lines(PROGRAM, "3,5-6")
    assert out.split(b"\n") == [b";header", b";estimated_time(s): 125.5", b";G0 X1", b"", b";G0 X2", b";G0 X3"]


def test_comment_out_open_range_skips_blank_and_comments():
    out = comment_out_lines(PROGRAM, "1-")
    assert out.split(b"\n") == [b";header", b";estimated_time(s): 125.5", b";G0 X1", b"", b";G0 X2", b";G0 X3"]


@pytest.mark.parametrize("ranges", ["0", "7", "4-2", "1-9", "a", "1-2-3", ""])
def test_bad_ranges(ranges):
    with pytest.raises(InvalidArgumentError):
        comment_out_lines(PROGRAM, ranges)
