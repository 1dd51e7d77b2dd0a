#!/usr/bin/env python3
"""
bittrace demo entry point for running as a module: python3 -m bittrace
"""

import sys
from bittrace.cli import main

if __name__ == '__main__':
    sys.exit(main())
