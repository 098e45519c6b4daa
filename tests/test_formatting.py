import pytest

from worktimer.formatting import duration, short_id


@pytest.mark.parametrize(
    "sec, want",
    [
        (0, "0s"),
        (-5, "0s"),
        (45, "45s"),
        (60, "1m 00s"),
        (125, "2m 05s"),
        (3599, "59m 59s"),
        (3600, "1h 00m 00s"),
        (3661, "1h 01m 01s"),
        (36000, "10h 00m 00s"),
    ],
)
def test_duration(sec, want):
    assert duration(sec) == want


@pytest.mark.parametrize(
    "value, want",
    [
        ("", ""),
        ("abcd", "abcd"),
        ("12345678", "12345678"),
        ("123456789", "12345678"),
        ("aabbccdd-1234-5678-9abc-deadbeefcafe", "aabbccdd"),
    ],
)
def test_short_id(value, want):
    assert short_id(value) == want