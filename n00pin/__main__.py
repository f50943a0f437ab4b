"""Allow ``python -m n00pin``."""

import sys

from n00pin.cli.main import main

sys.exit(main())
