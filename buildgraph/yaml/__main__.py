"""CLI entry point for buildgraph.yaml module.

Usage:
    python -m buildgraph.yaml [options] [build_file]

Example:
    python -m buildgraph.yaml build.yaml
    python -m buildgraph.yaml --target Package --set configuration=Debug
    python -m buildgraph.yaml --dry-run build.yaml
"""

from .runner import main
import sys

if __name__ == '__main__':
    sys.exit(main())
