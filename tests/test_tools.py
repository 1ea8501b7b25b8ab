"""
JSON-RPC tool server over stdio.
"""

import io
import json
import pytest
from unittest.mock import MagicMock

from statmem.api.tools import ToolServer, PARSE_ERROR, METHOD_NOT_FOUND, INVALID_PARAMS, INTERNAL_ERROR
from statmem.core.memory_store import MemoryStore
from statmem.vector.embeddings import StatisticalEmbedding
from statmem.vector.index import SimpleInMemoryVectorStore


@pytest.fixture
def memory_store(tmp_path):
    return MemoryStore(db_path=str(tmp_path / "tools.db"), vector_store=SimpleInMemoryVectorStore(),
                       embedding_provider=StatisticalEmbedding())


@pytest.fixture
def server(memory_store):
    return ToolServer(memory_store, stdin=io.StringIO(), stdout=io.StringIO())


def call(server, name, arguments=None, request_id=1):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return server.handle_request({"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": params})


def text_of(response):
    return response["result"]["content"][0]["text"]


def test_initialize(server):
    response = server.handle_request({"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}})
    assert response["result"]["protocolVersion"] == "2024-11-05"
    assert response["result"]["serverInfo"]["name"] == "memory-server"
    assert response["result"]["capabilities"] == {"tools": {}}


def test_tools_list(server):
    response = server.handle_request({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
    tools = {tool["name"]: tool for tool in response["result"]["tools"]}

    assert set(tools) == {"add_memory", "search_memories", "list_memories", "delete_memory"}
    assert tools["add_memory"]["inputSchema"]["required"] == ["content"]
    assert tools["search_memories"]["inputSchema"]["properties"]["threshold"]["default"] == 0.1


def test_unknown_method(server):
    response = server.handle_request({"jsonrpc": "2.0", "id": 3, "method": "resources/list"})
    assert response["error"]["code"] == METHOD_NOT_FOUND


def test_parse_error(server):
    response = server.handle_line("{not json")
    assert response["id"] is None
    assert response["error"] == {"code": PARSE_ERROR, "message": "Parse error"}


def test_add_and_list_memories(server, memory_store):
    response = call(server, "add_memory", {"content": "buy oat milk", "tags": ["shopping", 7],
                                           "favorite": True, "properties": {"store": "corner", "n": 1}})
    assert text_of(response).startswith("Memory added successfully with ID: ")

    [doc] = memory_store.list_documents()
    assert doc.tags == ["shopping"]
    assert doc.properties == {"store": "corner"}
    assert doc.favorite is True

    listing = text_of(call(server, "list_memories"))
    assert listing.startswith("Total 1 memories:\n\n1. [")
    assert "⭐" in listing
    assert "Content: buy oat milk" in listing


def test_add_memory_requires_content(server):
    response = call(server, "add_memory", {"tags": ["x"]})
    assert response["error"] == {"code": INVALID_PARAMS, "message": "Missing content"}


def test_search_memories(server):
    call(server, "add_memory", {"content": "the garden needs watering"})
    call(server, "add_memory", {"content": "invoice number 4411 is overdue"})

    response = call(server, "search_memories", {"query": "the garden needs watering", "limit": 1})
    text = text_of(response)
    assert text.startswith("Found 1 memories:")
    assert "the garden needs watering" in text


def test_search_memories_accepts_float_limit(server):
    call(server, "add_memory", {"content": "alpha beta"})
    response = call(server, "search_memories", {"query": "alpha beta", "limit": 5.0})
    assert "result" in response


def test_search_memories_invalid_threshold(server):
    response = call(server, "search_memories", {"query": "x", "threshold": 2})
    assert response["error"]["code"] == INVALID_PARAMS


def test_delete_memory(server, memory_store):
    doc = memory_store.add_document("delete me")

    response = call(server, "delete_memory", {"id": doc.id})
    assert text_of(response) == f"Memory with ID {doc.id} deleted successfully"
    assert memory_store.count() == 0

    missing = call(server, "delete_memory", {"id": doc.id})
    assert missing["error"]["code"] == INTERNAL_ERROR


def test_unknown_tool_and_bad_params(server):
    assert call(server, "rm_rf")["error"]["code"] == METHOD_NOT_FOUND

    bad = server.handle_request({"jsonrpc": "2.0", "id": 9, "method": "tools/call", "params": []})
    assert bad["error"] == {"code": INVALID_PARAMS, "message": "Invalid params"}

    nameless = server.handle_request({"jsonrpc": "2.0", "id": 9, "method": "tools/call", "params": {}})
    assert nameless["error"] == {"code": INVALID_PARAMS, "message": "Missing tool name"}


def test_store_failure_is_internal_error(memory_store):
    broken = MagicMock()
    broken.search.side_effect = RuntimeError("index offline")
    memory_store.vector_store = broken
    server = ToolServer(memory_store, stdin=io.StringIO(), stdout=io.StringIO())

    response = call(server, "search_memories", {"query": "anything"})
    assert response["error"]["code"] == INTERNAL_ERROR


def test_serve_reads_lines_until_eof(memory_store):
    requests = [
        {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
        {"jsonrpc": "2.0", "id": 2, "method": "tools/call",
         "params": {"name": "add_memory", "arguments": {"content": "hello"}}},
    ]
    stdin = io.StringIO("\n".join(json.dumps(r) for r in requests) + "\n\n")
    stdout = io.StringIO()

    ToolServer(memory_store, stdin=stdin, stdout=stdout).serve()

    responses = [json.loads(line) for line in stdout.getvalue().splitlines()]
    assert [r["id"] for r in responses] == [1, 2]
    assert memory_store.count() == 1


def test_comma_tag_rejected(server, memory_store):
    response = call(server, "add_memory", {"content": "x", "tags": ["a,b"]})
    assert response["error"]["code"] == INVALID_PARAMS
    assert memory_store.count() == 0


def test_huge_threshold_is_invalid_params(server):
    response = server.handle_line('{"jsonrpc": "2.0", "id": 4, "method": "tools/call", "params": '
                                  '{"name": "search_memories", "arguments": {"query": "x", "threshold": 1'
                                  + "0" * 400 + '}}}')
    assert response["error"]["code"] == INVALID_PARAMS


def test_server_keeps_serving_after_failed_call(memory_store):
    lines = [
        '{"jsonrpc": "2.0", "id": 1, "method": "tools/call", '
        '"params": {"name": "add_memory", "arguments": {"content": "bad \\ud800 text"}}}',
        '{"jsonrpc": "2.0", "id": 2, "method": "tools/call", '
        '"params": {"name": "search_memories", "arguments": {"query": "x", "threshold": 1' + "0" * 400 + '}}}',
        json.dumps({"jsonrpc": "2.0", "id": 3, "method": "tools/list"}),
    ]
    stdin = io.StringIO("\n".join(lines) + "\n")
    raw = io.BytesIO()
    stdout = io.TextIOWrapper(raw, encoding="utf-8")

    ToolServer(memory_store, stdin=stdin, stdout=stdout).serve()

    responses = [json.loads(line) for line in raw.getvalue().decode("utf-8").splitlines()]
    assert [r["id"] for r in responses] == [1, 2, 3]
    assert responses[0]["error"]["code"] == INTERNAL_ERROR
    assert responses[1]["error"]["code"] == INVALID_PARAMS
    assert len(responses[2]["result"]["tools"]) == 4
    assert memory_store.count() == 0
