#!/usr/bin/env python3
"""Entry point: ``python -m flashswap.main <command>``."""
from .cli import main

if __name__ == "__main__":
    main()
