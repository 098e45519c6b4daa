"""Infer a project slug and display name from a working directory."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass


@dataclass
class Detected:
    """Signals taken from a directory; empty git fields mean no repo or no origin."""

    cwd: str = ""
    git_root: str = ""
    inferred_slug: str = ""
    inferred_name: str = ""
    git_remote_url: str = ""


def _git(cwd: str, *args: str) -> str:
    if not cwd:
        return ""
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return ""
    return proc.stdout.strip()


def _base_name(path: str) -> str:
    if not path:
        return "."
    stripped = path.rstrip("/\\")
    if not stripped:
        return path[0]
    return os.path.basename(stripped)


def detect(cwd: str = "") -> Detected:
    """Inspect cwd (the process's working directory when empty)."""
    if not cwd:
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = ""
    git_root = _git(cwd, "rev-parse", "--show-toplevel")
    leaf = _base_name(git_root or cwd)
    return Detected(
        cwd=cwd,
        git_root=git_root,
        inferred_slug=slugify(leaf),
        inferred_name=title_case(leaf),
        git_remote_url=_git(git_root, "remote", "get-url", "origin"),
    )


def slugify(s: str) -> str:
    """Lowercase; runs of non-alphanumerics become one dash; trimmed; at most 60 chars."""
    out: list[str] = []
    prev_dash = True
    for ch in s.lower():
        if ("a" <= ch <= "z") or ("0" <= ch <= "9"):
            out.append(ch)
            prev_dash = False
        elif not prev_dash:
            out.append("-")
            prev_dash = True
    return "".join(out).rstrip("-")[:60]


def title_case(s: str) -> str:
    """Turn kebab, snake or spaced words into Title Case."""
    words = s.replace("-", " ").replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)