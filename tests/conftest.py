"""Pytest configuration.

Qt widget tests run headless: the offscreen platform is selected before any
Qt module is imported.  Engine tests never import Qt.
"""

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
