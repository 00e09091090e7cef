"""DIY projects: SQLite data access for projects, steps, materials and categories."""
from __future__ import annotations

__version__ = "0.1.0"
