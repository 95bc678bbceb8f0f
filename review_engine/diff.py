"""
Patch normalization.

Every rule in the engine runs against added code only. Context and removed
lines never reach a rule.
"""

from typing import List, Optional


def added_lines(patch: Optional[str]) -> List[str]:
    """Return the added lines of a unified diff, without their leading '+'."""
    if not patch:
        return []

    return [
        line[1:]
        for line in patch.split('\n')
        if line.startswith('+') and not line.startswith('+++')
    ]


def normalize_patch(patch: Optional[str]) -> str:
    """Join the added lines of a patch into one block of text."""
    return '\n'.join(added_lines(patch))
