"""Allow ``python -m lsix``."""

import sys

from lsix.cli import main

sys.exit(main())
