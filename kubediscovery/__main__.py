"""Entry point for `python -m kubediscovery`.

Usage:
    python -m kubediscovery
"""

from __future__ import annotations

import asyncio

from kubediscovery.app import main

asyncio.run(main())
