"""Root conftest: makes ``src/`` importable and exposes the shared Nacos fixtures."""
import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent.parent / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from fixtures.conftest import *  # noqa: F403, F401,E402
