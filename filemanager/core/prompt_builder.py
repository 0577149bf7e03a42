# filemanager/core/prompt_builder.py
from typing import Optional

RESPONSE_SHAPE = """Respond with ONLY a JSON object, no prose, in exactly this shape:
{
  "summary": "one sentence describing what you changed",
  "actions": [
    {
      "action": "create" | "update" | "delete",
      "filename": "path relative to the target folder",
      "content": "the COMPLETE file content (omit for delete)",
      "reason": "why this file is touched"
    }
  ]
}"""

CONTENT_RULES = """Rules:
- List actions in the order they must be applied.
- "content" is always the full file, never a diff or a fragment.
- Generated code must be complete and functional, with no placeholders.
- Use the file extension that matches the language (.py, .html, .css, .js, ...).
- Use "update" only for files that already exist, "create" for new ones."""


def build_prompt(
    command: str,
    target_folder: str,
    existing_content: Optional[str] = None,
    filename: Optional[str] = None,
) -> str:
    """
    smart-execute 요청을 AI 게이트웨이용 지시문으로 변환합니다.
    같은 입력에는 항상 같은 문자열을 반환합니다.
    """
    parts = [
        "You are an AI file manager. Turn the user's command into file operations.",
        RESPONSE_SHAPE,
        CONTENT_RULES,
        f"Target folder: {target_folder}",
    ]
    if existing_content is not None:
        name = filename or "(unnamed file)"
        parts.append(f"Existing file {name}:\n{existing_content}")
    parts.append(f"User command: {command}")
    return "\n\n".join(parts)


def build_edit_prompt(prompt: str, code: str, filename: Optional[str] = None) -> str:
    """Single-file edit mode: the gateway returns only the updated code."""
    name = filename or "the current file"
    return (
        f"You are a code editor AI. Update the code in {name} based on the user prompt. "
        f"Return ONLY the updated code.\n\nExisting Code:\n{code}\n\nPrompt: {prompt}"
    )
