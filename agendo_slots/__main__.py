"""
Convenience entry point for running agendo_slots directly.

Usage: python -m agendo_slots [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
