#!/usr/bin/env python3
"""
Maker-Checker Service Entry Point

Starts the FastAPI server in front of the banking core platform.
"""

import sys

import uvicorn

from maker_checker.config import get_config


def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False, workers: int = 1):
    """Run the FastAPI server"""
    uvicorn.run(
        "maker_checker.api_modular:app",
        host=host,
        port=port,
        reload=debug,
        workers=1 if debug else workers,
        log_level="info"
    )


if __name__ == "__main__":
    config = get_config()

    print("Starting Maker-Checker Service...")
    print(f"Platform: {config.platform_base_url} (default tenant: {config.default_tenant})")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    print()

    try:
        run_server(
            host=config.api_host,
            port=config.api_port,
            workers=config.api_workers
        )
    except KeyboardInterrupt:
        print("\nShutting down Maker-Checker Service...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
