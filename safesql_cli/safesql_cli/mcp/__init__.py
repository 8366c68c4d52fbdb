"""SafeSQL MCP (Model Context Protocol) server.

Exposes the gateway to AI assistants as two tools, ``sql.query`` and
``sql.explain_safe``, plus the ``safesql://config`` resource.

Install with the ``mcp`` extra::

    pip install safesql[mcp]

Start the server::

    safesql mcp serve                       # stdio transport
    safesql mcp serve --transport sse -p 3333
"""
