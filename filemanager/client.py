# filemanager/client.py
"""
AI File Manager command-line client
Usage:
  filemanager-client health
  filemanager-client set-folder ~/Projects/site
  filemanager-client run "create a hello world python script" [--folder PATH]
  filemanager-client history
"""
import argparse
import json
import os
import sys
import time
import uuid
from typing import Any, Callable, Dict, Optional

import httpx

BASE_URL = os.getenv("FILEMANAGER_URL", "http://127.0.0.1:3000")
DEFAULT_TIMEOUT = 5.0
MAX_ATTEMPTS = 3

RETRYABLE = (httpx.ConnectError, httpx.TimeoutException)


def _post(client: httpx.Client, path: str, payload: Dict[str, Any], headers: Optional[dict] = None) -> Dict[str, Any]:
    resp = client.post(path, json=payload, headers=headers)
    data = resp.json()
    if resp.status_code >= 400:
        raise RuntimeError(data.get("error") or f"Server error: {resp.status_code}")
    return data


def submit_command(client: httpx.Client, command: str, folder: Optional[str] = None,
                   attempts: int = MAX_ATTEMPTS, key: Optional[str] = None,
                   sleep: Callable[[float], None] = time.sleep) -> Dict[str, Any]:
    """
    smart-execute 요청. 연결 오류/타임아웃일 때만 선형 백오프(1s, 2s)로 재시도하고,
    모든 시도에 같은 Idempotency-Key를 보내 서버가 중복 적용 대신 이전 결과를 돌려주게 합니다.
    """
    key = key or str(uuid.uuid4())
    payload: Dict[str, Any] = {"command": command}
    if folder:
        payload["folderPath"] = folder

    for attempt in range(1, attempts + 1):
        try:
            return _post(client, "/smart-execute", payload, headers={"Idempotency-Key": key})
        except RETRYABLE as e:
            if attempt >= attempts:
                raise
            print(f"[Client] Attempt {attempt} failed ({type(e).__name__}); retrying...", file=sys.stderr)
            sleep(attempt * 1.0)
    raise RuntimeError("unreachable")


def main(argv=None, client: Optional[httpx.Client] = None) -> int:
    parser = argparse.ArgumentParser(prog="filemanager-client", description="AI File Manager client")
    parser.add_argument("--url", default=BASE_URL, help="backend base URL")
    parser.add_argument("--timeout", type=float, default=DEFAULT_TIMEOUT)
    sub = parser.add_subparsers(dest="cmd", required=True)
    sub.add_parser("health")
    p_folder = sub.add_parser("set-folder")
    p_folder.add_argument("path")
    p_run = sub.add_parser("run")
    p_run.add_argument("command")
    p_run.add_argument("--folder", default=None)
    sub.add_parser("history")
    args = parser.parse_args(argv)

    own_client = client is None
    client = client or httpx.Client(base_url=args.url, timeout=args.timeout)
    try:
        if args.cmd == "health":
            out = client.get("/health").json()
        elif args.cmd == "set-folder":
            out = _post(client, "/set-folder", {"folderPath": args.path})
        elif args.cmd == "run":
            out = submit_command(client, args.command, folder=args.folder)
        else:
            out = client.get("/history").json()
    except (httpx.HTTPError, RuntimeError, ValueError) as e:
        print(f"[Client ERROR] {e}", file=sys.stderr)
        return 1
    finally:
        if own_client:
            client.close()

    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
