"""Allow `python -m docsctl`."""

import sys

from docsctl.cli import main

sys.exit(main())
