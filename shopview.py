#!/usr/bin/env python3
"""
Convenience shim to run Shopview from a source checkout.
Usage: python shopview.py [--config PATH] [--debug] [--once] [QUERY_OR_LINK]
"""

from shopview.cli import main


if __name__ == "__main__":
    main()
