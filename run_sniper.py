#!/usr/bin/env python3
"""
Pool Sniper runner
"""
import sys

from pool_sniper.main import main

if __name__ == "__main__":
    sys.exit(main())
