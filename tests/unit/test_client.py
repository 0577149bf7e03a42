# tests/unit/test_client.py
import json

import httpx
import pytest

from filemanager.client import main, submit_command


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler), base_url="http://test")


def test_retries_connect_errors_with_same_key_and_linear_backoff():
    seen_keys, sleeps = [], []

    def handler(request):
        seen_keys.append(request.headers["Idempotency-Key"])
        if len(seen_keys) < 3:
            raise httpx.ConnectError("refused", request=request)
        return httpx.Response(200, json={"success": True, "filesAffected": []})

    out = submit_command(_client(handler), "make a page", folder="/work", sleep=sleeps.append)

    assert out["success"] is True
    assert len(seen_keys) == 3 and len(set(seen_keys)) == 1
    assert sleeps == [1.0, 2.0]


def test_gives_up_after_three_attempts():
    calls = []

    def handler(request):
        calls.append(1)
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(httpx.ReadTimeout):
        submit_command(_client(handler), "x", sleep=lambda s: None)
    assert len(calls) == 3


def test_server_errors_are_not_retried():
    calls = []

    def handler(request):
        calls.append(json.loads(request.content))
        return httpx.Response(400, json={"success": False, "error": "Command is required"})

    with pytest.raises(RuntimeError, match="Command is required"):
        submit_command(_client(handler), "", sleep=lambda s: None)
    assert len(calls) == 1
    assert "folderPath" not in calls[0]


def test_cli_run_prints_result(capsys):
    def handler(request):
        assert request.url.path == "/smart-execute"
        return httpx.Response(200, json={"success": True, "summary": "done"})

    assert main(["run", "hello", "--folder", "/w"], client=_client(handler)) == 0
    assert json.loads(capsys.readouterr().out)["summary"] == "done"


def test_cli_reports_errors(capsys):
    def handler(request):
        return httpx.Response(400, json={"success": False, "error": "Folder path is required"})

    assert main(["set-folder", " "], client=_client(handler)) == 1
    assert "Folder path is required" in capsys.readouterr().err
