"""Launcher script for the Thai Learning Cards API server."""

import os

from ..config import Config
from .app import create_app


def main(host: str = None, port: int = None):
    """Run the Flask development server."""
    Config.ensure_directories()

    # Only bind to localhost when debug mode is enabled
    # to prevent exposing the interactive debugger to the network
    debug_mode = os.environ.get('FLASK_DEBUG', 'True').lower() == 'true'
    app = create_app({'USE_RELOADER': debug_mode})
    print("\n" + "=" * 60)
    print("Thai Learning Cards API")
    print("=" * 60)

    if host is None:
        host = '127.0.0.1' if debug_mode else '0.0.0.0'
    if port is None:
        port = int(os.environ.get('FLASK_PORT', '3000'))

    if debug_mode:
        print("\n⚠️  Running in DEBUG mode - server restricted to localhost only")
    print(f"Starting server at http://{host}:{port}")
    print("Press Ctrl+C to stop the server")

    app.run(debug=debug_mode, use_reloader=debug_mode, host=host, port=port)


if __name__ == '__main__':
    main()
