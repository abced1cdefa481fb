# =============================================================================
# tools/__init__.py
# =============================================================================
# The MCP layer: tool schemas, dispatch and reply formatting.
#
# ARCHITECTURAL ROLE:
#   tools/ translates between the MCP host and core/.  It:
#     1. Advertises the tool catalog (names, descriptions, input schemas)
#     2. Turns tool arguments into core/ calls
#     3. Renders results and errors as text replies
#
#   It holds no business state; the only shared object is the client.
# =============================================================================
