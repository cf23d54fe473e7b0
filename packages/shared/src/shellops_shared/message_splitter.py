"""Utilities for splitting long command output to fit Telegram's message limit.

Splitting strategy (in priority order):
1. Split at the last newline before the limit, so output lines stay whole.
2. Hard-cut at max_length only if a single line is longer than the limit.

Chunks are plain text. Callers wrap each chunk in its own <pre> block, which
is why splitting never has to reason about markup.
"""

_DEFAULT_MAX_LENGTH = 3800


def split_message(text: str, max_length: int = _DEFAULT_MAX_LENGTH) -> list[str]:
    """Split a long text into Telegram-safe chunks.

    Args:
        text: Raw command output.
        max_length: Maximum character length per chunk. The default leaves
            headroom below Telegram's 4096 limit for the <pre> wrapper and
            HTML escaping.

    Returns:
        A list of strings, each at most max_length characters. Empty input
        yields an empty list.
    """
    if not text:
        return []
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    remaining = text

    while len(remaining) > max_length:
        candidate = remaining[:max_length]
        split_index = _find_split_index(candidate)
        chunks.append(remaining[:split_index].rstrip("\n"))
        remaining = remaining[split_index:]

    if remaining.strip("\n"):
        chunks.append(remaining)

    return chunks


def _find_split_index(candidate: str) -> int:
    """Return the index just after the last newline, or a hard cut."""
    last_newline = candidate.rfind("\n")
    if last_newline > 0:
        return last_newline + 1
    return len(candidate)
