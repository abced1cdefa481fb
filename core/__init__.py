# =============================================================================
# core/__init__.py
# =============================================================================
# Fastalert API access: settings, data models and the HTTP client.
#
# ARCHITECTURAL RULE:
#   Nothing in this package imports FastMCP or the MCP SDK.  The client and
#   models can be used (and tested) without any protocol machinery; tools/
#   is the only layer that knows about MCP.
# =============================================================================
