"""Run the command line interface with ``python -m insightcleaner``."""

import sys

from .cli import main

sys.exit(main())
