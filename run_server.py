#!/usr/bin/env python3
"""Run the Cromatizate adaptation service"""

import uvicorn

from cromatizate.config import AppConfig
from cromatizate.security import enforce_local_binding


def main():
    """Run the FastAPI server"""
    config = AppConfig()
    host = enforce_local_binding(config)
    port = config.get("server.port", 8008)
    log_level = config.get("server.log_level", "info")

    print("Starting Cromatizate adaptation service")
    print(f"Server: {host}:{port}")
    print(f"Log level: {log_level}")
    print(f"Database: {config.get('storage.db_path')}")
    print(f"CORS: {'Enabled' if config.get('security.cors.enabled') else 'Disabled'}")
    print("-" * 50)

    uvicorn.run(
        "cromatizate:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=log_level,
        reload=True,
    )


if __name__ == "__main__":
    main()
