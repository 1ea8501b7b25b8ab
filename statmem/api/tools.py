"""
Tool server: line-delimited JSON-RPC 2.0 over stdio.

Exposes memory tools to a client:
- add_memory - Store a new document
- search_memories - Semantic search with threshold and favorite boost
- list_memories - List every document
- delete_memory - Delete a document by ID

Responses are written to stdout, one ASCII-escaped JSON object per line.
Logging goes to stderr. A failing tool call is answered with an error
response and the server keeps reading.
"""

import json
import sys
from typing import Any, Dict, Optional, TextIO

from ..core.config import DEFAULT_SEARCH_LIMIT, DEFAULT_SEARCH_THRESHOLD, PROTOCOL_VERSION, SERVER_NAME, VERSION
from ..core.documents import format_document_listing
from ..core.errors import DocumentNotFoundError, InvalidParameterError, StoreUnavailableError
from ..core.memory_store import MemoryStore
from ..util.logging import logger, truncate

PARSE_ERROR = -32700
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ToolError(Exception):
    """A tool call failure carrying its JSON-RPC error code."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def text_result(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


class ToolServer:
    """
    JSON-RPC dispatcher for the memory tools.

    Handles `initialize`, `tools/list` and `tools/call`; anything else is
    answered with METHOD_NOT_FOUND.
    """

    def __init__(self, store: MemoryStore, stdin: TextIO = None, stdout: TextIO = None):
        self.store = store
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout
        self.tools = {}
        self._register_tools()

    def _register_tools(self):
        """Register all available tools."""
        self.tools = {
            "add_memory": {
                "function": self._add_memory,
                "description": "Add a new memory document to the store",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "content": {"type": "string", "description": "The content of the memory document"},
                        "tags": {"type": "array", "description": "Tags for the document", "items": {"type": "string"}},
                        "favorite": {"type": "boolean", "description": "Mark as favorite document"},
                        "properties": {"type": "object", "description": "Additional key-value properties"},
                    },
                    "required": ["content"],
                },
            },
            "search_memories": {
                "function": self._search_memories,
                "description": "Search for memory documents based on query",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "query": {"type": "string", "description": "Search query"},
                        "limit": {"type": "integer", "description": "Maximum number of results",
                                  "default": DEFAULT_SEARCH_LIMIT},
                        "threshold": {"type": "number", "description": "Similarity threshold (0.0-1.0)",
                                      "default": DEFAULT_SEARCH_THRESHOLD},
                    },
                    "required": ["query"],
                },
            },
            "list_memories": {
                "function": self._list_memories,
                "description": "List all memory documents",
                "inputSchema": {"type": "object", "properties": {}},
            },
            "delete_memory": {
                "function": self._delete_memory,
                "description": "Delete a memory document by ID",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "string", "description": "Document ID to delete"},
                    },
                    "required": ["id"],
                },
            },
        }

    def serve(self) -> None:
        """Read requests from stdin until EOF."""
        logger.info("Starting tool server on stdio")
        for line in self.stdin:
            if not line.strip():
                continue
            response = self.handle_line(line)
            if response is not None:
                self._send(response)

    def handle_line(self, line: str) -> Optional[Dict[str, Any]]:
        """Parse one request line and return the response object."""
        logger.debug(f"Received request: {truncate(line.strip(), 200)}")
        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse request: {e}")
            return self._error(None, PARSE_ERROR, "Parse error")

        if not isinstance(request, dict):
            return self._error(None, PARSE_ERROR, "Parse error")

        return self.handle_request(request)

    def handle_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        request_id = request.get("id")
        method = request.get("method")

        if method == "initialize":
            return self._response(request_id, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": VERSION},
            })
        if method == "tools/list":
            return self._response(request_id, {"tools": self.list_tools()})
        if method == "tools/call":
            return self._call_tool(request_id, request.get("params"))

        return self._error(request_id, METHOD_NOT_FOUND, "Method not found")

    def list_tools(self):
        return [
            {"name": name, "description": tool["description"], "inputSchema": tool["inputSchema"]}
            for name, tool in self.tools.items()
        ]

    def _call_tool(self, request_id, params) -> Dict[str, Any]:
        if not isinstance(params, dict):
            return self._error(request_id, INVALID_PARAMS, "Invalid params")

        name = params.get("name")
        if not isinstance(name, str):
            return self._error(request_id, INVALID_PARAMS, "Missing tool name")

        arguments = params.get("arguments")
        if not isinstance(arguments, dict):
            arguments = {}

        tool = self.tools.get(name)
        if tool is None:
            return self._error(request_id, METHOD_NOT_FOUND, "Unknown tool")

        try:
            return self._response(request_id, tool["function"](arguments))
        except ToolError as e:
            return self._error(request_id, e.code, e.message)
        except InvalidParameterError as e:
            return self._error(request_id, INVALID_PARAMS, str(e))
        except DocumentNotFoundError as e:
            return self._error(request_id, INTERNAL_ERROR, f"Delete failed: {e}")
        except StoreUnavailableError as e:
            logger.error(f"Tool {name} failed: {e}")
            return self._error(request_id, INTERNAL_ERROR, f"Backing store unavailable: {e}")
        except Exception as e:
            logger.error(f"Tool {name} raised {type(e).__name__}: {e}")
            return self._error(request_id, INTERNAL_ERROR, f"Internal error: {e}")

    def _add_memory(self, args: Dict[str, Any]) -> Dict[str, Any]:
        content = args.get("content")
        if not isinstance(content, str):
            raise ToolError(INVALID_PARAMS, "Missing content")

        tags = [t for t in args["tags"] if isinstance(t, str)] \
            if isinstance(args.get("tags"), list) else []
        # tags are comma-joined in vector metadata
        for tag in tags:
            if "," in tag:
                raise ToolError(INVALID_PARAMS, f"Tag cannot contain a comma: {tag!r}")
        properties = {k: v for k, v in args["properties"].items() if isinstance(v, str)} \
            if isinstance(args.get("properties"), dict) else {}
        favorite = args.get("favorite") if isinstance(args.get("favorite"), bool) else False

        doc = self.store.add_document(content, tags, properties, favorite)
        return text_result(f"Memory added successfully with ID: {doc.id}")

    def _search_memories(self, args: Dict[str, Any]) -> Dict[str, Any]:
        query = args.get("query")
        if not isinstance(query, str):
            raise ToolError(INVALID_PARAMS, "Missing query")

        limit = args.get("limit", DEFAULT_SEARCH_LIMIT)
        # JSON numbers arrive as floats from some clients
        if isinstance(limit, float) and limit.is_integer():
            limit = int(limit)
        threshold = args.get("threshold", DEFAULT_SEARCH_THRESHOLD)

        results = self.store.search_documents(query, limit, threshold)
        docs = [r.document for r in results]
        return text_result(format_document_listing(docs, f"Found {len(docs)} memories:"))

    def _list_memories(self, args: Dict[str, Any]) -> Dict[str, Any]:
        docs = self.store.list_documents()
        return text_result(format_document_listing(docs, f"Total {len(docs)} memories:"))

    def _delete_memory(self, args: Dict[str, Any]) -> Dict[str, Any]:
        document_id = args.get("id")
        if not isinstance(document_id, str):
            raise ToolError(INVALID_PARAMS, "Missing document ID")

        self.store.delete_document(document_id)
        return text_result(f"Memory with ID {document_id} deleted successfully")

    def _response(self, request_id, result) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    def _error(self, request_id, code: int, message: str) -> Dict[str, Any]:
        return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}

    def _send(self, response: Dict[str, Any]) -> None:
        self.stdout.write(json.dumps(response) + "\n")
        self.stdout.flush()
