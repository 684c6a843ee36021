from __future__ import annotations

from jinja2 import Template
from pydantic import BaseModel

from veritas.config import CONFIG_DIR


class LLMOptions(BaseModel):
    """Sampling and request options, read from the `llm:` section of settings.yaml."""

    temperature: float = 0.0
    top_p: float = 0.1
    max_tokens: int | None = None
    json_mode: bool = True
    referer: str = "https://localhost"
    title: str = "Veritas"


class Prompt(BaseModel):
    messages: list[dict]
    temperature: float
    top_p: float
    max_tokens: int | None = None
    response_format: dict | None = None


def load_prompt(name: str, **kwargs) -> str:
    """Load a prompt template from config/prompts/{name}.md and render with kwargs."""
    path = CONFIG_DIR / "prompts" / f"{name}.md"
    template_text = path.read_text()
    template = Template(template_text)
    return template.render(**kwargs)


def build_prompt(content: str, options: LLMOptions | None = None) -> Prompt:
    """Wrap resolved content in the fixed classification instructions."""
    options = options or LLMOptions()

    return Prompt(
        messages=[
            {"role": "system", "content": load_prompt("system")},
            {"role": "user", "content": load_prompt("analyze", content=content)},
        ],
        temperature=options.temperature,
        top_p=options.top_p,
        max_tokens=options.max_tokens,
        # A hint only; the provider may still answer with prose.
        response_format={"type": "json_object"} if options.json_mode else None,
    )
