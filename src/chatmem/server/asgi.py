"""ASGI entry point for running the chatmem server via uvicorn CLI.

Used by `chatmem start --detach` to launch the server as a subprocess:
    python -m uvicorn chatmem.server.asgi:app --host ... --port ...

The config file comes from $CHATMEM_CONFIG, which `chatmem start` sets from
its --config option, or the default location.
"""

from chatmem.config.loader import load_config
from chatmem.server.app import create_app

config = load_config()
app = create_app(config)
