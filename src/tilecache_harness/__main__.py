# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

import argparse
import logging
import sys
import tempfile
import time
from typing import List, Optional

from tilecache_harness.config import HarnessConfig
from tilecache_harness.defaults import HarnessDefaults
from tilecache_harness.errors import HarnessError
from tilecache_harness.fixture import TileCacheFixture
from tilecache_harness.logging import configure_harness_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Stand up a throwaway tile cache service for manual testing"
    )
    parser.add_argument(
        "--base-dir",
        type=str,
        default=None,
        help="Directory for the per-run storage (default: a new temp directory)",
    )
    parser.add_argument(
        "--port-min", type=int, default=HarnessDefaults.port_min, help="First port to try"
    )
    parser.add_argument(
        "--port-max", type=int, default=HarnessDefaults.port_max, help="Last port to try"
    )
    parser.add_argument(
        "--hold",
        type=float,
        default=None,
        help="Seconds to keep the service up (default: until interrupted)",
    )
    parser.add_argument(
        "--log-level", type=str, default=None, help="debug, info, warning or error"
    )
    args = parser.parse_args(argv)
    try:
        args.config = HarnessConfig(port_min=args.port_min, port_max=args.port_max)
    except ValueError as e:
        parser.error(f"invalid port range: {e}")
    return args


def run(args: argparse.Namespace) -> int:
    config = args.config
    with tempfile.TemporaryDirectory(prefix="tilecache-") as tmp:
        fixture = TileCacheFixture(args.base_dir or tmp, config=config)
        try:
            fixture.start()
        except HarnessError as e:
            logger.error(f"Failed to start: {e}")
            return 1

        print(fixture.uri, flush=True)
        try:
            if args.hold is None:
                while True:
                    time.sleep(1)
            else:
                time.sleep(args.hold)
        except KeyboardInterrupt:
            logger.info("Interrupted")

        try:
            fixture.close(timeout=2 * config.shutdown_timeout + 5)
        except HarnessError as e:
            logger.error(f"Teardown failed: {e}")
            return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_harness_logging(args.log_level)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
