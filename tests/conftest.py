# tests/conftest.py
import json
import sys
from pathlib import Path

import pytest

# 프로젝트 루트를 sys.path에 추가 (filemanager 임포트를 위해)
sys.path.insert(0, str(Path(__file__).parent.parent))

from filemanager.core.store import ConfigStore
from filemanager.errors import UpstreamUnavailable


class FakeGateway:
    """Returns queued completions in order; an Exception in the queue is raised instead."""
    provider = "fake:test"

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise UpstreamUnavailable("no scripted response left")
        out = self.responses.pop(0)
        if isinstance(out, BaseException):
            raise out
        return out


def plan_json(summary="ok", *actions) -> str:
    return json.dumps({"summary": summary, "actions": list(actions)})


@pytest.fixture
def project(tmp_path):
    folder = tmp_path / "project"
    folder.mkdir()
    return folder


@pytest.fixture
def store(tmp_path):
    return ConfigStore(tmp_path / "data" / "config.json")
