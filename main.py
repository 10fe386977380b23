"""Application entry point for Cookie Hunter.

Initializes logging, loads the configuration, and runs the cookie engine on
the Qt event loop.
"""

import sys

from cookie_hunter.app import main

if __name__ == "__main__":
    sys.exit(main())
