"""Wire-level integration tests over the stdio transport.

The server is started with every GitHub URL pointing at a closed port, so
discovery fails fast and the registry starts empty.
"""

from __future__ import annotations

import json
import queue
import subprocess
import sys
import threading
import time
from typing import Any

_RESPONSE_TIMEOUT = 30.0


def _exchange(env: dict[str, str], calls: list[dict[str, Any]]) -> dict[int, dict[str, Any]]:
    """Initialize, send ``calls`` (ids from 2), and return responses keyed by id.

    Stdin stays open until every request has been answered: the server treats
    EOF as shutdown and cancels handlers that are still running.
    """
    proc = subprocess.Popen(
        [sys.executable, "-m", "zkkit_mcp.server"],
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        text=True,
        env=env,
    )
    assert proc.stdin is not None
    assert proc.stdout is not None

    lines: queue.Queue[str] = queue.Queue()

    def pump() -> None:
        for line in proc.stdout:
            lines.put(line)

    reader = threading.Thread(target=pump, daemon=True)
    reader.start()

    messages: list[dict[str, Any]] = [
        {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "initialize",
            "params": {
                "protocolVersion": "2025-06-18",
                "capabilities": {},
                "clientInfo": {"name": "pytest", "version": "0"},
            },
        },
        {"jsonrpc": "2.0", "method": "notifications/initialized"},
    ]
    for i, call in enumerate(calls, start=2):
        messages.append({"jsonrpc": "2.0", "id": i, **call})

    expected = {m["id"] for m in messages if "id" in m}
    responses: dict[int, dict[str, Any]] = {}
    try:
        for message in messages:
            proc.stdin.write(json.dumps(message) + "\n")
        proc.stdin.flush()

        deadline = time.monotonic() + _RESPONSE_TIMEOUT
        while not expected <= responses.keys():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                line = lines.get(timeout=remaining)
            except queue.Empty:
                break
            if not line.strip():
                continue
            payload = json.loads(line)
            if "id" in payload:
                responses[payload["id"]] = payload
    finally:
        proc.stdin.close()
        try:
            proc.wait(timeout=10)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
        reader.join(timeout=5)
        proc.stdout.close()

    missing = expected - responses.keys()
    assert not missing, f"no response for ids {sorted(missing)}"
    return responses


def _tool_call(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    return {"method": "tools/call", "params": {"name": name, "arguments": arguments}}


def test_github_failure_serializes_to_structured_tool_error(
    subprocess_env: dict[str, str],
) -> None:
    """ZkKitError is returned as structured JSON in the tool result text."""
    responses = _exchange(subprocess_env, [_tool_call("get_repo_stats", {"language": "rust"})])

    result = responses[2]["result"]
    assert result["isError"] is True

    text_payload = result["content"][0]["text"]
    assert "Error executing tool" not in text_payload

    parsed = json.loads(text_payload)
    assert parsed["error"]["code"] == "FETCH_FAILED"
    assert parsed["error"]["recoverable"] is True


def test_empty_registry_is_reported_with_guidance(subprocess_env: dict[str, str]) -> None:
    responses = _exchange(
        subprocess_env,
        [
            _tool_call("list_packages", {"query": "lean"}),
            _tool_call("get_package_readme", {"name": "lean-imt"}),
        ],
    )

    assert responses[1]["result"]["serverInfo"]["name"] == "zk-kit-mcp"

    listing = responses[2]["result"]
    assert listing["isError"] is False
    assert "registry is empty" in listing["content"][0]["text"]

    readme = responses[3]["result"]
    assert readme["isError"] is False
    assert readme["content"][0]["text"].startswith('Package "lean-imt" not found.')


def test_invalid_arguments_are_rejected(subprocess_env: dict[str, str]) -> None:
    responses = _exchange(
        subprocess_env, [_tool_call("list_packages", {"language": "python"})]
    )
    assert responses[2]["result"]["isError"] is True
