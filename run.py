#!/usr/bin/env python3
"""Sidecar runner"""
import sys
from sidecar.cli import main

if __name__ == '__main__':
    # Exit non-zero on any fatal error so the supervisor restarts us
    sys.exit(main())
