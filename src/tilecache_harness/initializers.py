# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Initializers are caller supplied setup actions applied to a provisioned
directory before the service starts. They are plain callables taking the
directory path; these helpers compose them.
"""

import logging
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

Initializer = Callable[[Path], None]
ErrorHandler = Callable[[Exception], None]


def noop(directory: Path) -> None:
    """Initializer that leaves the directory empty."""
    return None


def and_then(first: Initializer, *rest: Initializer) -> Initializer:
    """Run ``first`` and then each of ``rest`` against the same directory.

    A failure stops the chain and propagates; later initializers do not run.
    """
    steps = (first,) + rest

    def _chained(directory: Path) -> None:
        for step in steps:
            step(directory)

    return _chained


def make_safe(initializer: Initializer, handler: ErrorHandler) -> Initializer:
    """Wrap ``initializer`` so that a failure is passed to ``handler``.

    The returned initializer never raises for an ``Exception`` raised by
    ``initializer``; whatever ``handler`` raises still propagates.
    """

    def _safe(directory: Path) -> None:
        try:
            initializer(directory)
        except Exception as e:
            logger.debug("Initializer failed for %s, redirecting: %s", directory, e)
            handler(e)

    return _safe


def write_files(files: dict[str, str]) -> Initializer:
    """Initializer that writes ``files`` (relative path -> text) into the directory."""

    def _write(directory: Path) -> None:
        for relative, content in files.items():
            target = Path(directory) / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

    return _write
