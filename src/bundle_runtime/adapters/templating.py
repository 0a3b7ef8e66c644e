from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError


class TemplateRenderError(ValueError):
    pass


def build_environment() -> Environment:
    # Undefined references fail loudly; a silently empty argument would reach the mixin.
    return Environment(undefined=StrictUndefined, autoescape=False, keep_trailing_newline=True)


def recursive_render_factory(env: Environment) -> Callable[[Any, Mapping[str, Any]], Any]:
    # Non-mutating render over nested step data; only strings holding "{{" are templated.
    def recursive_render(data: Any, context: Mapping[str, Any]) -> Any:
        if isinstance(data, Mapping):
            return {key: recursive_render(value, context) for key, value in data.items()}
        if isinstance(data, list):
            return [recursive_render(item, context) for item in data]
        if isinstance(data, str) and "{{" in data:
            try:
                return env.from_string(data).render(**context)
            except TemplateError as exc:
                raise TemplateRenderError(f"rendering failed for template {data!r}: {exc}") from exc
        return data

    return recursive_render
