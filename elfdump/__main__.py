"""
Elfdump Module Entry Point
===========================

Allows running the Elfdump CLI via: python -m elfdump
"""

from elfdump.cli import main

if __name__ == "__main__":
    main()
