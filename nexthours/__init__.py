"""nexthours: appointment timeline ("next few hours") layout engine.

Public API:
  - import from `nexthours.api` (preferred) or `import nexthours` (re-export)
"""

from __future__ import annotations

from .api import *  # noqa: F401,F403
from . import api as _api

__all__ = list(_api.__all__)
