"""
Entry point for running the API tooling as a module.

Usage:
    python -m crystal_api serve
"""

from crystal_api.cli import main

if __name__ == "__main__":
    main()
