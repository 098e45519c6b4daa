"""Project slug derivation."""


def slugify(s: str) -> str:
    """Lowercase ASCII letters and digits; space, dash and underscore become dashes."""
    out = []
    for ch in s.strip().lower():
        if ch.isascii() and ch.isalnum():
            out.append(ch)
        elif ch in " -_":
            out.append("-")
    return "".join(out)