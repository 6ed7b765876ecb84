"""Allow running wt as ``python -m wt``."""

import sys

from .cli import main

sys.exit(main())
