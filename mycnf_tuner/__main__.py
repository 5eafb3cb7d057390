"""
Entry point for running mycnf_tuner as a module.

Usage:
    python -m mycnf_tuner --dry-run
"""

from .cli import main

if __name__ == "__main__":
    main()
