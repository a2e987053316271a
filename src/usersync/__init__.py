"""
usersync -- offline-first user replica synchronization.

Edit users locally, push pending changes when the network is back,
pull the server's full state into the local replica.
"""

import os

__version__ = "0.1.0"

USERSYNC_HOME = os.environ.get("USERSYNC_HOME", "~/.usersync")
