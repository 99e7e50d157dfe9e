"""Allow running keydeck as ``python -m keydeck``."""

import sys

from keydeck.cli.app import main


if __name__ == "__main__":
    sys.exit(main())
