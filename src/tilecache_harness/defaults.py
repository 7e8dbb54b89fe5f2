# SPDX-FileCopyrightText: Copyright (c) 2025 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0


# Source of truth for harness defaults
class HarnessDefaults:
    host = "127.0.0.1"
    scheme = "http"
    port_min = 8080
    port_max = 8180
    context_path = "/geowebcache"
    worker_threads = 50  # fixed pool, min == max
    accept_queue_size = 100
    startup_timeout = 30.0  # in seconds
    shutdown_timeout = 10.0  # in seconds, applied once graceful and once forced


class ServiceDefaults:
    conf_dir_param = "GEOWEBCACHE_CONF_DIR"
    cache_dir_param = "GEOWEBCACHE_CACHE_DIR"
    realm = "GeoWebCache"
    admin_username = "geowebcache"
    admin_password = "secured"
