"""Allow ``python -m fixture_watcher``."""

import sys

from fixture_watcher.main import main


if __name__ == "__main__":
    sys.exit(main())
