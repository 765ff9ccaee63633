"""
API Server Entry Point

Starts the FastAPI server over the local visitor store
"""

import logging

import uvicorn
from portaria.api.server import create_app
from portaria.config.settings import get_settings


def main():
    """Start API server"""
    settings = get_settings()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app()

    print(f"\n🚀 Starting API server on {settings.api_host}:{settings.api_port}")
    print(f"📖 API docs: http://{settings.api_host}:{settings.api_port}/docs")
    print(f"💾 Local store: {settings.store_path}\n")

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
