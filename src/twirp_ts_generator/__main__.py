"""Allow running the generator with `python -m twirp_ts_generator`."""

import sys

from twirp_ts_generator.cli import main

sys.exit(main())
