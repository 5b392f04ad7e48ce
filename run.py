#!/usr/bin/env python3
"""Launch the desktop visibility monitor.

Usage:
    python run.py [config.yaml] [--helper PATH] [--debug] [--trace] [--verbose]
"""
import asyncio

from desktop_monitor.main import main

if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
