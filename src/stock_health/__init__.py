"""Stock Health MCP Server."""

import os


def get_server_version() -> str:
    """Get version with fallback for dev mode."""
    if version := os.environ.get("SERVER_VERSION"):
        return version
    try:
        from importlib.metadata import version as pkg_version

        return pkg_version("stock-health-mcp")
    except Exception:
        return "dev"


SERVER_VERSION = get_server_version()
# Bump when the analysis result schema changes materially
# v1: Initial schema (health score, sub-scores, factors, reasoning)
# v2: Added action/recommendation split, narrative lists, annotations
SCHEMA_VERSION = "2"
