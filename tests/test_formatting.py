from datetime import datetime

import pytest

from ui.formatting import format_time, relative

NOW = 1_700_000_000_000


@pytest.mark.parametrize(
    ("elapsed_ms", "expected"),
    [
        (0, "0s ago"),
        (59_999, "59s ago"),
        (60_000, "1m ago"),
        (59 * 60_000, "59m ago"),
        (3_600_000, "1h ago"),
        (23 * 3_600_000 + 3_599_999, "23h ago"),
        (86_400_000, "1d ago"),
        (10 * 86_400_000, "10d ago"),
    ],
)
def test_relative_buckets(elapsed_ms: int, expected: str) -> None:
    assert relative(NOW - elapsed_ms, now=NOW) == expected


def test_relative_future_timestamp_clamps_to_zero() -> None:
    assert relative(NOW + 5_000, now=NOW) == "0s ago"


def test_format_time_uses_local_time() -> None:
    expected = datetime.fromtimestamp(NOW / 1000).strftime("%Y-%m-%d %H:%M:%S")

    assert format_time(NOW) == expected
