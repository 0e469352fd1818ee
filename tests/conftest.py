"""
Shared pytest configuration: import path and library log levels
"""

import logging
import os
import sys

SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))

if SRC_PATH not in sys.path:
    sys.path.insert(0, SRC_PATH)


def pytest_configure(config):
    # Quiet third-party loggers
    for name in ("apscheduler", "httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)
