#!/usr/bin/env python3
"""Serve the sandbox codegen API with uvicorn."""
import uvicorn

from src.api.dependencies import get_config

if __name__ == "__main__":
    server = get_config().server
    uvicorn.run("src.main:app", host=server.host, port=server.port, reload=server.reload)
