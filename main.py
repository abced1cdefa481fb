# =============================================================================
# main.py  —  Entry Point for the Fastalert MCP Server
# =============================================================================
#
# HOW TO RUN:
#   API_KEY=... uv run python main.py        (or the fastalert-mcp script)
#
# WHAT HAPPENS:
#   1. Loads .env, then reads API_KEY / BASE_URL / REQUEST_TIMEOUT once
#   2. Creates the Fastalert client (core/client.py)
#   3. Builds the FastMCP server with both tools (tools/mcp_server.py)
#   4. Serves MCP over stdio until the host disconnects or Ctrl+C
#
# EXIT CODES:
#   0  clean shutdown (interrupt)
#   1  startup failed (missing API key, bad config, transport failure)
# =============================================================================

import logging
import sys

from dotenv import load_dotenv

from core.client import FastalertClient
from core.config import Settings
from tools.mcp_server import create_server


def main() -> None:
    # .env values never override variables already set in the environment.
    load_dotenv()

    try:
        settings = Settings.from_env()
        client = FastalertClient(
            settings.api_key,
            base_url=settings.base_url,
            timeout=settings.request_timeout,
        )
        server = create_server(client)
    except Exception as err:
        logging.error(f"❌ Failed to start Fastalert MCP server: {err}")
        sys.exit(1)

    logging.info(f"✅ Fastalert MCP server running on stdio ({settings.base_url})")
    try:
        server.run(transport="stdio")
    except KeyboardInterrupt:
        # In-flight calls are not drained.
        logging.info("🛑 Shutting down Fastalert MCP server...")
        sys.exit(0)
    except Exception as err:
        logging.error(f"❌ Fastalert MCP server stopped: {err}")
        sys.exit(1)


if __name__ == "__main__":
    main()
