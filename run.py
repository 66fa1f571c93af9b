#!/usr/bin/env python3
"""
Surveillance Console - Entry Point
"""
import os
from dotenv import load_dotenv

# Load environment variables before importing app
load_dotenv()

from surveillance_console import create_app
from surveillance_console.config import DevelopmentConfig, ProductionConfig


def main():
    """Main entry point"""
    # Debug mode - disabled by default
    debug_mode = os.environ.get('DEBUG', 'false').lower() == 'true'
    app = create_app(DevelopmentConfig if debug_mode else ProductionConfig)

    if debug_mode:
        print("[Flask] WARNING: Debug mode is ENABLED (not for production!)")

    host = os.environ.get('CONSOLE_HOST', '127.0.0.1')
    port = int(os.environ.get('CONSOLE_PORT', '5000'))
    print(f"[Flask] Starting console API on http://{host}:{port}/api")
    app.run(host=host, port=port, debug=debug_mode, threaded=True, use_reloader=False)


if __name__ == '__main__':
    main()
