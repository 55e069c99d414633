#!/usr/bin/env python3
"""
Launch script for the SkyTrack API.

Usage:
    python scripts/run_server.py              # Production
    python scripts/run_server.py --dev        # Development (hot reload)
    python scripts/run_server.py --port 8080  # Custom port
"""

import argparse
import os
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Ensure project root is on PYTHONPATH
sys.path.insert(0, str(PROJECT_ROOT))
os.chdir(PROJECT_ROOT)

from skytrack.utils.config_loader import APIConfig, Config


def main():
    api = Config().load_config("api.yaml", APIConfig)

    parser = argparse.ArgumentParser(description="SkyTrack API server")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with hot reload")
    parser.add_argument("--host", default=api.host, help=f"Host to bind (default: {api.host})")
    parser.add_argument("--port", type=int, default=api.port, help=f"Port (default: {api.port})")
    args = parser.parse_args()

    print("Starting SkyTrack API...")
    print(f"  URL: http://{args.host}:{args.port}")
    print(f"  WebSocket: ws://{args.host}:{args.port}/api/ws")
    print()

    import uvicorn
    uvicorn.run(
        "skytrack.api.main:app",
        host=args.host,
        port=args.port,
        reload=args.dev or api.reload,
        log_level="info",
    )


if __name__ == "__main__":
    main()
