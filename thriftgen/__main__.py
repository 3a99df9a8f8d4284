# © Copyright 2025-2026, Query.Farm LLC - https://query.farm
# SPDX-License-Identifier: Apache-2.0

"""Allow ``python -m thriftgen``."""

from thriftgen.cli import app

app()
