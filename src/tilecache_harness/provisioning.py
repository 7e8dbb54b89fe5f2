# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from tilecache_harness.errors import ProvisioningFailure
from tilecache_harness.initializers import Initializer, noop

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionedDirectories:
    """The three per-run storage areas handed to the service"""

    conf_dir: Path
    cache_dir: Path
    work_dir: Path

    def as_dict(self) -> dict[str, Path]:
        return {
            "conf": self.conf_dir,
            "cache": self.cache_dir,
            "work": self.work_dir,
        }


def _new_directory(base_dir: Path, role: str) -> Path:
    """Create a fresh, uniquely named directory for ``role`` under ``base_dir``."""
    return Path(tempfile.mkdtemp(prefix=f"{role}-", dir=base_dir)).resolve()


def _run_initializer(role: str, initializer: Initializer, directory: Path) -> None:
    logger.info(f"Initializing {role} directory {directory}")
    try:
        initializer(directory)
    except Exception as e:
        logger.error(f"FAILED: {role} initializer for {directory}: {e}")
        raise ProvisioningFailure(
            f"Failed to initialize {role} directory {directory}: {e}"
        ) from e


def provision_directories(
    base_dir: Union[str, os.PathLike],
    conf_init: Initializer = noop,
    cache_init: Initializer = noop,
) -> ProvisionedDirectories:
    """Create the configuration, cache and working directories for one run.

    Directories are created under ``base_dir`` with unique names, so a base
    directory shared between runs never hands out the same storage twice.
    ``conf_init`` runs before ``cache_init``; the first failure raises
    ProvisioningFailure, nothing further is initialized and the directories
    are removed again.

    Args:
        base_dir: Root under which the three directories are created
        conf_init: Initializer applied to the configuration directory
        cache_init: Initializer applied to the cache directory

    Returns:
        ProvisionedDirectories: The created, initialized directories
    """
    base = Path(base_dir)
    base.mkdir(parents=True, exist_ok=True)

    directories = ProvisionedDirectories(
        conf_dir=_new_directory(base, "conf"),
        cache_dir=_new_directory(base, "cache"),
        work_dir=_new_directory(base, "work"),
    )

    try:
        _run_initializer("configuration", conf_init, directories.conf_dir)
        _run_initializer("cache", cache_init, directories.cache_dir)
    except ProvisioningFailure as e:
        for error in discard_directories(directories):
            e.add_suppressed(error)
        raise

    return directories


def discard_directories(directories: ProvisionedDirectories) -> List[Exception]:
    """Delete the directories of a finished run.

    Every directory is attempted; failures are returned rather than raised so
    the caller can attach them to whatever else went wrong during teardown.
    """
    errors: List[Exception] = []
    for role, directory in directories.as_dict().items():
        try:
            shutil.rmtree(directory)
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.error(f"FAILED: removing {role} directory {directory}: {e}")
            errors.append(e)
    return errors
