# Allows the package to be run as a script using `python -m login_finder`

from __future__ import annotations

import sys

from login_finder.cli import main

if __name__ == "__main__":
    sys.exit(main())
