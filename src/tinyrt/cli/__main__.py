"""Main entry point for the tinyrt CLI when run as a module."""

import sys

from tinyrt.cli import main

if __name__ == "__main__":
    sys.exit(main())
