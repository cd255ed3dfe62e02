"""
Safe .env file parser for queue configuration.

Parses KEY=value files without shell execution. Values that look like shell
expansion are rejected rather than interpreted.
"""

import re
from pathlib import Path

FORBIDDEN_PATTERNS = [
    r'`',           # backticks
    r'\$\(',        # command substitution
    r'\$\{',        # variable expansion
    r';',           # command chaining
    r'\|',          # pipe
]

KEY_PATTERN = re.compile(r'^[A-Z][A-Z0-9_]*$')


def parse_env(text: str, source: str = "<string>") -> dict[str, str]:
    """
    Parse KEY=value lines into a dict.

    Blank lines and '#' comments are skipped, an optional leading 'export '
    is allowed, and matching single or double quotes are stripped.

    Raises:
        ValueError: if a line is malformed or a value contains a forbidden pattern
    """
    result = {}
    for lineno, line in enumerate(text.splitlines(), 1):
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        if line.startswith('export '):
            line = line[len('export '):].lstrip()

        key, sep, value = line.partition('=')
        if not sep:
            raise ValueError(f"{source}:{lineno}: Invalid syntax (no '=')")

        key = key.strip()
        value = value.strip()
        if not KEY_PATTERN.match(key):
            raise ValueError(f"{source}:{lineno}: Invalid key '{key}'")

        if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
            value = value[1:-1]

        for pattern in FORBIDDEN_PATTERNS:
            if re.search(pattern, value):
                raise ValueError(f"{source}:{lineno}: Forbidden pattern in value for {key}")

        result[key] = value

    return result


def load_env(filepath: Path) -> dict[str, str]:
    """Parse an env file. A missing file yields an empty dict."""
    if not filepath.exists():
        return {}
    return parse_env(filepath.read_text(), source=str(filepath))
