"""
Controller discovery - Resolves glob patterns to controller paths.

Supports ``*``, ``?``, ``[...]``, recursive ``**`` and shell brace
alternation (``{a,b}``, nested). Matches are returned sorted so that
registration order does not depend on filesystem enumeration order.
"""

import glob
from typing import List


def _split_top_level(body: str) -> List[str]:
    """Split a brace body on commas that are not inside nested braces."""
    parts = []
    depth = 0
    current = ""
    for char in body:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        elif char == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        current += char
    parts.append(current)
    return parts


def expand_braces(pattern: str) -> List[str]:
    """
    Expand shell brace alternation in a pattern.

    ``"ctrl/{a,b}/*.py"`` expands to ``["ctrl/a/*.py", "ctrl/b/*.py"]``.
    Groups without a comma and unbalanced braces are left as literal text.

    Args:
        pattern: The pattern to expand

    Returns:
        Expanded patterns in order of appearance, without duplicates
    """
    start = pattern.find("{")
    while start != -1:
        depth = 0
        for end in range(start, len(pattern)):
            if pattern[end] == "{":
                depth += 1
            elif pattern[end] == "}":
                depth -= 1
                if depth == 0:
                    break
        else:
            return [pattern]

        options = _split_top_level(pattern[start + 1 : end])
        if len(options) > 1:
            prefix, suffix = pattern[:start], pattern[end + 1 :]
            expanded: List[str] = []
            for option in options:
                for candidate in expand_braces(prefix + option + suffix):
                    if candidate not in expanded:
                        expanded.append(candidate)
            return expanded

        start = pattern.find("{", end + 1)

    return [pattern]


def resolve_pattern(pattern: str) -> List[str]:
    """
    Resolve a glob pattern against the filesystem.

    Args:
        pattern: Shell-style glob, e.g. ``"controllers/**/*.py"``

    Returns:
        Matching paths, de-duplicated and sorted lexicographically
    """
    matches = set()
    for expanded in expand_braces(pattern):
        matches.update(glob.glob(expanded, recursive=True))
    return sorted(matches)
