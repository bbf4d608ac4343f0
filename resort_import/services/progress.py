from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm

"""Batch progress display with tqdm (TTY only).

The matcher and the committer report progress through a plain
callback(batch_number, total_batches). ProgressTracker adapts that callback
to a single tqdm bar. In non-TTY environments (CI, redirected output) no bar
is created, to avoid ANSI control sequence spam.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]

def is_tty_enabled() -> bool:
    """Return True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()

class ProgressTracker:
    """tqdm bar over request batches, created on the first callback."""

    def __init__(self, description: str = "Batches") -> None:
        self.description = description
        self.current_batch = 0
        self.total_batches = 0
        self.enabled = is_tty_enabled()
        self.pbar: tqdm | None = None

    def _ensure_bar(self, total: int) -> None:
        if not self.enabled or self.pbar is not None:
            return
        self.pbar = tqdm(
            total=total,
            desc=self.description,
            unit="batch",
            ncols=80,
            ascii=True,
        )

    def callback(self, batch: int, total: int) -> None:
        """Progress hook: called before batch `batch` of `total` is sent."""
        self.total_batches = total
        self._ensure_bar(total)
        # 直前のバッチ完了分を進める
        if self.pbar is not None and self.current_batch > 0:
            self.pbar.update(1)
        self.current_batch = batch
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} {batch}/{total}")

    def set_postfix(self, **kwargs: Any) -> None:
        if self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        """Finish the last batch and close the bar."""
        if self.pbar is not None:
            if self.current_batch > 0:
                self.pbar.update(1)
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
