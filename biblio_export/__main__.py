#!/usr/bin/env python3
"""
Bibliographic Export Engine - Main Entry Point

This module allows the package to be run as a script:
    python -m biblio_export
"""

# Local imports
from biblio_export.adapters.cli.main import main

if __name__ == "__main__":
    raise SystemExit(main())
