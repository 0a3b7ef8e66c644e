from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import yaml

# Built-in actions; any other action name is a custom action declared by the bundle.
INSTALL = "install"
UPGRADE = "upgrade"
UNINSTALL = "uninstall"
CORE_ACTIONS = (INSTALL, UPGRADE, UNINSTALL)


def applies_to(apply_to: Sequence[str], action: str) -> bool:
    # Empty scope means the item applies to every action.
    if not apply_to:
        return True
    return action in apply_to


@dataclass(frozen=True, slots=True)
class Step:
    # One unit of work: the mixin that runs it plus the mixin-specific body.
    mixin: str
    data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.mixin, str) or not self.mixin.strip():
            raise ValueError("Step mixin name must be a non-empty string")
        if not isinstance(self.data, Mapping):
            raise TypeError(f"Step {self.mixin} body must be a mapping (type={type(self.data).__name__})")

    @property
    def description(self) -> str | None:
        value = self.data.get("description")
        return value if isinstance(value, str) and value else None

    def to_dict(self) -> dict[str, Any]:
        return {self.mixin: dict(self.data)}

    @classmethod
    def from_dict(cls, raw: object) -> Step:
        # Manifest steps are single-key mappings: {<mixin>: {...}}.
        if not isinstance(raw, Mapping) or len(raw) != 1:
            raise ValueError("Step must be a mapping with exactly one mixin key")
        ((mixin, body),) = raw.items()
        if body is None:
            body = {}
        return cls(mixin=str(mixin), data=dict(body) if isinstance(body, Mapping) else body)


@dataclass(frozen=True, slots=True)
class OutputDefinition:
    # Bundle-level output declaration; `path` enables collection without a producing step.
    name: str
    path: str | None = None
    apply_to: tuple[str, ...] = ()
    sensitive: bool = False
    description: str | None = None
    type: str | None = None

    def applies_to(self, action: str) -> bool:
        return applies_to(self.apply_to, action)


@dataclass(frozen=True, slots=True)
class ParameterDefinition:
    name: str
    type: str = "string"
    default: Any = None
    env: str | None = None
    path: str | None = None
    sensitive: bool = False
    required: bool = False
    apply_to: tuple[str, ...] = ()

    @property
    def env_name(self) -> str:
        return self.env or self.name.upper()

    def applies_to(self, action: str) -> bool:
        return applies_to(self.apply_to, action)


@dataclass(frozen=True, slots=True)
class CredentialDefinition:
    # Credentials are always treated as sensitive.
    name: str
    env: str | None = None
    path: str | None = None
    required: bool = True
    apply_to: tuple[str, ...] = ()

    @property
    def env_name(self) -> str:
        return self.env or self.name.upper()

    def applies_to(self, action: str) -> bool:
        return applies_to(self.apply_to, action)


@dataclass(frozen=True, slots=True)
class ImageDefinition:
    name: str
    repository: str
    tag: str | None = None
    digest: str | None = None

    def as_template_value(self) -> dict[str, str]:
        return {
            "repository": self.repository,
            "tag": self.tag or "",
            "digest": self.digest or "",
        }


@dataclass(frozen=True, slots=True)
class ActionInput:
    # Envelope sent to a mixin: the current action and the steps it should run.
    action: str
    steps: tuple[Step, ...]

    @classmethod
    def for_step(cls, action: str, step: Step) -> ActionInput:
        return cls(action=action, steps=(step,))

    def to_dict(self) -> dict[str, Any]:
        return {self.action: [step.to_dict() for step in self.steps]}

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, default_flow_style=False)


def duplicate_names(definitions: Iterable[OutputDefinition]) -> list[str]:
    # Returns duplicated output names (empty when the set is well formed).
    seen: set[str] = set()
    dupes: list[str] = []
    for definition in definitions:
        if definition.name in seen and definition.name not in dupes:
            dupes.append(definition.name)
        seen.add(definition.name)
    return dupes
