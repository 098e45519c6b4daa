import pytest

from worktimer.projectdetect import Detected, detect, slugify, title_case


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("timer", "timer"),
        ("My Cool Project", "my-cool-project"),
        ("my_cool-project", "my-cool-project"),
        ("  spaced  ", "spaced"),
        ("!@#abc!@#", "abc"),
        ("", ""),
        ("a---b", "a-b"),
        ("UPPER", "upper"),
        ("with123digits", "with123digits"),
        ("trailing----dashes", "trailing-dashes"),
    ],
)
def test_slugify(value, expected):
    assert slugify(value) == expected


def test_slugify_caps_at_60():
    assert len(slugify("a" * 80)) == 60


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("timer", "Timer"),
        ("my-cool-project", "My Cool Project"),
        ("my_cool_project", "My Cool Project"),
        ("  hello  world ", "Hello World"),
        ("", ""),
    ],
)
def test_title_case(value, expected):
    assert title_case(value) == expected


def test_detect_fallback_to_basename(tmp_path):
    directory = str(tmp_path)
    detected = detect(directory)
    assert isinstance(detected, Detected)
    assert detected.cwd == directory
    assert detected.inferred_slug != ""


def test_detect_empty_uses_process_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    detected = detect("")
    assert detected.cwd != ""
    assert detected.inferred_slug == slugify(detected.inferred_name) or detected.inferred_slug