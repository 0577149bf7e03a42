# tests/unit/test_prompt_builder.py
from filemanager.core.prompt_builder import build_edit_prompt, build_prompt


def test_prompt_states_response_shape_and_embeds_command():
    prompt = build_prompt("create a hello world python script", "/work/site")
    for field in ('"summary"', '"actions"', '"action"', '"filename"', '"content"', '"reason"'):
        assert field in prompt
    assert "User command: create a hello world python script" in prompt
    assert "Target folder: /work/site" in prompt
    assert "complete and functional" in prompt


def test_prompt_is_deterministic():
    assert build_prompt("make a page", "/x") == build_prompt("make a page", "/x")


def test_prompt_includes_existing_file_only_when_given():
    plain = build_prompt("fix the bug", "/x")
    assert "Existing file" not in plain

    with_file = build_prompt("fix the bug", "/x", existing_content="print(1)\n", filename="app.py")
    assert "Existing file app.py:\nprint(1)" in with_file
    assert with_file.index("Existing file") < with_file.index("User command")


def test_prompt_keeps_empty_existing_content():
    prompt = build_prompt("fill it", "/x", existing_content="", filename="empty.txt")
    assert "Existing file empty.txt:" in prompt


def test_edit_prompt_embeds_code_and_request():
    prompt = build_edit_prompt("rename foo to bar", "def foo(): pass", "util.py")
    assert "util.py" in prompt
    assert "def foo(): pass" in prompt
    assert prompt.rstrip().endswith("Prompt: rename foo to bar")
    assert "Return ONLY the updated code" in prompt
