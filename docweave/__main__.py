"""Allow running as python -m docweave."""

import sys

from docweave.cli import main

sys.exit(main())
