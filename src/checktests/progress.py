"""Progress bars for long passes."""

from __future__ import annotations

import sys

from tqdm import tqdm


def progress_bar(total: int, description: str, enabled: bool = True) -> tqdm:
    """
    Create a progress bar on stderr.

    A disabled bar still accepts ``update()`` and ``close()`` so callers
    never need to branch on it.
    """
    return tqdm(
        total=total,
        desc=description,
        unit="item",
        file=sys.stderr,
        disable=not enabled,
        leave=False,
    )
