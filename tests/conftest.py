"""Pytest configuration.

The package is laid out flat at the repository root. This conftest ensures tests can import
`regatta_nlq.*` when running `pytest` from a checkout without installing the package.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT))
