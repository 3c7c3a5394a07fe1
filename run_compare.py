"""Convenience shim to run the repository comparison workflow."""

from __future__ import annotations

import sys

from release_compare.compare.runner import main as compare_main


if __name__ == "__main__":
    sys.exit(compare_main(sys.argv[1:]))
