"""Entry point: python -m ifbw."""

import sys

from ifbw.cli import main

if __name__ == "__main__":
    sys.exit(main())
