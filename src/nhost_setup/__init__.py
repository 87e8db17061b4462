"""nhost-setup package."""

from __future__ import annotations

import os

__version__ = os.getenv("NHOST_SETUP_BUILD_VERSION", "0.1.0")
