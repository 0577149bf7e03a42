# filemanager/core/fallback.py
"""
Fallback plan generator
- AI 응답을 해석할 수 없을 때 키워드 규칙표로 단일 파일 스캐폴드를 만듭니다.
- 규칙은 위에서부터 순서대로 검사하며, 아무것도 맞지 않으면 DEFAULT_TEMPLATE을 씁니다.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence, Tuple

from filemanager.core.models import ActionPlan

FALLBACK_REASON = "fallback creation"

PYTHON_TEMPLATE = '''#!/usr/bin/env python3
"""Generated by AI File Manager.

Request: {command}
"""


def main():
    print("Hello, World!")


if __name__ == "__main__":
    main()
'''

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Generated Page</title>
    <style>
        body {{ font-family: sans-serif; margin: 2rem; }}
    </style>
</head>
<body>
    <h1>Hello, World!</h1>
    <p>Generated for: {command}</p>
</body>
</html>
"""


@dataclass(frozen=True)
class Template:
    name: str
    filename: str
    body: str

    def render(self, command: str) -> str:
        return self.body.format(command=command)


PYTHON = Template("python-script", "main.py", PYTHON_TEMPLATE)
HTML = Template("html-page", "index.html", HTML_TEMPLATE)

# (keywords, template) — 순서가 우선순위
DEFAULT_RULES: Tuple[Tuple[Tuple[str, ...], Template], ...] = (
    (("python", ".py"), PYTHON),
    (("html", "web", "page"), HTML),
)
DEFAULT_TEMPLATE = HTML


class FallbackGenerator:
    def __init__(self, rules: Sequence[Tuple[Sequence[str], Template]] = DEFAULT_RULES,
                 default: Template = DEFAULT_TEMPLATE):
        self.rules = tuple((tuple(k.lower() for k in kws), tpl) for kws, tpl in rules)
        self.default = default

    def classify(self, command: str) -> Template:
        text = (command or "").lower()
        for keywords, template in self.rules:
            if any(k in text for k in keywords):
                return template
        return self.default

    def generate(self, command: str) -> ActionPlan:
        template = self.classify(command)
        content = template.render(command or "")
        return ActionPlan(
            summary=f"Fallback: created {template.filename} from the {template.name} template",
            actions=[{
                "action": "create",
                "filename": template.filename,
                "content": content,
                "reason": FALLBACK_REASON,
            }],
            degraded=True,
        )
