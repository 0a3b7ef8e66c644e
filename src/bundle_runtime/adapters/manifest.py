from __future__ import annotations

import base64
import binascii
import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bundle_runtime.adapters.templating import TemplateRenderError, build_environment, recursive_render_factory
from bundle_runtime.domain.bundle import BundleMetadata, RelocationMap, parse_image_reference, relocate
from bundle_runtime.domain.errors import ImageMetadataError, PreparationError, StepResolutionError, ValidationError
from bundle_runtime.domain.manifest import (
    CORE_ACTIONS,
    CredentialDefinition,
    ImageDefinition,
    OutputDefinition,
    ParameterDefinition,
    Step,
    duplicate_names,
)
from bundle_runtime.ports.manifest import RuntimeManifest

# Declarations mirror the manifest sections; unknown keys are tolerated because the
# same manifest also feeds build-time tooling with its own fields.


class ManifestError(ValidationError):
    stage = "invalid manifest"


class ParameterDecl(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str
    type: str = "string"
    default: Any = None
    env: str | None = None
    path: str | None = None
    sensitive: bool = False
    required: bool = False
    apply_to: list[str] = Field(default_factory=list, alias="applyTo")

    def to_domain(self) -> ParameterDefinition:
        return ParameterDefinition(
            name=self.name,
            type=self.type,
            default=self.default,
            env=self.env,
            path=self.path,
            sensitive=self.sensitive,
            required=self.required,
            apply_to=tuple(self.apply_to),
        )


class CredentialDecl(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str
    env: str | None = None
    path: str | None = None
    required: bool = True
    apply_to: list[str] = Field(default_factory=list, alias="applyTo")

    def to_domain(self) -> CredentialDefinition:
        return CredentialDefinition(
            name=self.name,
            env=self.env,
            path=self.path,
            required=self.required,
            apply_to=tuple(self.apply_to),
        )


class OutputDecl(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    name: str
    path: str | None = None
    sensitive: bool = False
    description: str | None = None
    type: str | None = None
    apply_to: list[str] = Field(default_factory=list, alias="applyTo")

    def to_domain(self) -> OutputDefinition:
        return OutputDefinition(
            name=self.name,
            path=self.path or None,
            apply_to=tuple(self.apply_to),
            sensitive=self.sensitive,
            description=self.description,
            type=self.type,
        )


class ImageDecl(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    repository: str
    tag: str | None = None
    digest: str | None = None


class ManifestDocument(BaseModel):
    # Custom actions are top-level keys holding step lists; they land in model_extra.
    model_config = ConfigDict(extra="allow", populate_by_name=True)
    name: str
    version: str = ""
    mixins: list[str | dict[str, Any]] = Field(default_factory=list)
    parameters: list[ParameterDecl] = Field(default_factory=list)
    credentials: list[CredentialDecl] = Field(default_factory=list)
    outputs: list[OutputDecl] = Field(default_factory=list)
    images: dict[str, ImageDecl] = Field(default_factory=dict)
    install: list[Any] | None = None
    upgrade: list[Any] | None = None
    uninstall: list[Any] | None = None
    custom_actions: dict[str, Any] = Field(default_factory=dict, alias="customActions")

    def mixin_names(self) -> list[str]:
        # Mixins are declared as bare names or as {name: config} mappings.
        names: list[str] = []
        for entry in self.mixins:
            if isinstance(entry, str):
                names.append(entry)
            else:
                names.extend(str(key) for key in entry)
        return names

    def raw_steps(self, action: str) -> list[Any] | None:
        if action in CORE_ACTIONS:
            return getattr(self, action)
        extra = self.model_extra or {}
        value = extra.get(action)
        return value if isinstance(value, list) else None


def load_manifest_document(path: Path) -> ManifestDocument:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(exc, resource=str(path), stage="could not read manifest") from exc
    except yaml.YAMLError as exc:
        raise ManifestError(exc, resource=str(path)) from exc
    if not isinstance(raw, dict):
        raise ManifestError("manifest root must be a mapping", resource=str(path))
    try:
        return ManifestDocument.model_validate(raw)
    except PydanticValidationError as exc:
        raise ManifestError(exc, resource=str(path)) from exc


class YamlRuntimeManifest(RuntimeManifest):
    # Runtime view of one action of a YAML manifest; step bodies are rendered with jinja2.
    def __init__(
        self,
        document: ManifestDocument,
        action: str,
        *,
        env: Mapping[str, str] | None = None,
        installation_name: str = "",
    ) -> None:
        if not action:
            raise ManifestError("action must be a non-empty string")
        self._document = document
        self._action = action
        self._env = dict(os.environ if env is None else env)
        self._installation_name = installation_name
        self._parameters = [decl.to_domain() for decl in document.parameters]
        self._credentials = [decl.to_domain() for decl in document.credentials]
        self._output_definitions = [decl.to_domain() for decl in document.outputs]
        self._images = {
            name: ImageDefinition(name=name, repository=decl.repository, tag=decl.tag, digest=decl.digest)
            for name, decl in document.images.items()
        }
        self._steps: list[Step] | None = None
        self._produced: dict[str, str] = {}
        self._render = recursive_render_factory(build_environment())

    @classmethod
    def load(
        cls,
        path: Path,
        action: str,
        *,
        env: Mapping[str, str] | None = None,
        installation_name: str = "",
    ) -> YamlRuntimeManifest:
        return cls(load_manifest_document(path), action, env=env, installation_name=installation_name)

    @property
    def action(self) -> str:
        return self._action

    @property
    def name(self) -> str:
        return self._document.name

    @property
    def images(self) -> Mapping[str, ImageDefinition]:
        return dict(self._images)

    def validate(self) -> None:
        problems: list[str] = []
        steps = self.steps()
        declared_mixins = set(self._document.mixin_names())
        for index, step in enumerate(steps, start=1):
            if step.mixin not in declared_mixins:
                problems.append(f"step {index} uses mixin {step.mixin} which is not declared in mixins")

        for name in duplicate_names(self._output_definitions):
            problems.append(f"output {name} is declared more than once")

        for credential in self._credentials:
            if credential.required and credential.applies_to(self._action):
                if self._credential_value(credential) is None:
                    problems.append(f"credential {credential.name} is required but was not provided")

        for parameter in self._parameters:
            if parameter.required and parameter.applies_to(self._action) and parameter.default is None:
                if parameter.env_name not in self._env:
                    problems.append(f"parameter {parameter.name} is required but was not provided")

        if problems:
            raise ManifestError("; ".join(problems), resource=self._action)

    def prepare(self) -> None:
        # File parameters arrive base64-encoded in the environment and are written to their path.
        for parameter in self._parameters:
            if parameter.type != "file" or not parameter.applies_to(self._action):
                continue
            encoded = self._env.get(parameter.env_name)
            if encoded is None:
                continue
            if not parameter.path:
                raise PreparationError("file parameter has no path", resource=parameter.name)
            try:
                contents = base64.b64decode(encoded, validate=True)
            except (binascii.Error, ValueError) as exc:
                raise PreparationError(f"invalid base64 value: {exc}", resource=parameter.name) from exc
            target = Path(parameter.path)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_bytes(contents)
            except OSError as exc:
                raise PreparationError(exc, resource=f"{parameter.name} ({target})") from exc

    def resolve_images(self, metadata: BundleMetadata, relocation_map: RelocationMap) -> None:
        for name, declared in list(self._images.items()):
            bundle_image = metadata.images.get(name)
            if bundle_image is None:
                continue
            original = bundle_image.image
            try:
                ref = parse_image_reference(relocate(original, relocation_map))
            except ValueError as exc:
                raise ImageMetadataError(exc, resource=name) from exc
            self._images[name] = ImageDefinition(
                name=declared.name,
                repository=ref.repository,
                tag=ref.tag or declared.tag,
                digest=ref.digest or bundle_image.content_digest or declared.digest,
            )

    def resolve_step(self, step: Step) -> Step:
        try:
            data = self._render(dict(step.data), self._template_context())
        except TemplateRenderError as exc:
            raise StepResolutionError(exc, resource=step.mixin) from exc
        return Step(mixin=step.mixin, data=data)

    def apply_step_outputs(self, outputs: Mapping[str, str]) -> None:
        self._produced.update(outputs)

    def steps(self) -> Sequence[Step]:
        if self._steps is None:
            self._steps = self._parse_steps()
        return list(self._steps)

    def output_definitions(self) -> Mapping[str, OutputDefinition]:
        return {definition.name: definition for definition in self._output_definitions}

    def produced_outputs(self) -> Mapping[str, str]:
        return dict(self._produced)

    def sensitive_values(self) -> list[str]:
        values: list[str] = []
        for parameter in self._parameters:
            if parameter.sensitive and parameter.applies_to(self._action):
                value = self._parameter_value(parameter)
                if value is not None:
                    values.append(str(value))
        for credential in self._credentials:
            if credential.applies_to(self._action):
                value = self._credential_value(credential)
                if value is not None:
                    values.append(value)
        definitions = self.output_definitions()
        for name, value in self._produced.items():
            definition = definitions.get(name)
            if definition is not None and definition.sensitive:
                values.append(value)
        return [value for value in values if value]

    def _parse_steps(self) -> list[Step]:
        raw = self._document.raw_steps(self._action)
        if raw is None:
            raise ManifestError(f"action {self._action} is not defined in the manifest", resource=self.name)
        steps: list[Step] = []
        for index, item in enumerate(raw, start=1):
            try:
                steps.append(Step.from_dict(item))
            except (TypeError, ValueError) as exc:
                raise ManifestError(exc, resource=f"{self._action} step {index}") from exc
        return steps

    def _parameter_value(self, parameter: ParameterDefinition) -> Any:
        if parameter.type == "file":
            return parameter.path if parameter.env_name in self._env else None
        return self._env.get(parameter.env_name, parameter.default)

    def _credential_value(self, credential: CredentialDefinition) -> str | None:
        if credential.env_name in self._env:
            return self._env[credential.env_name]
        if credential.path:
            path = Path(credential.path)
            if path.is_file():
                return path.read_text(encoding="utf-8")
        return None

    def _template_context(self) -> dict[str, Any]:
        parameters = {
            parameter.name: self._parameter_value(parameter)
            for parameter in self._parameters
            if parameter.applies_to(self._action)
        }
        credentials = {
            credential.name: self._credential_value(credential)
            for credential in self._credentials
            if credential.applies_to(self._action)
        }
        return {
            "bundle": {
                "name": self._document.name,
                "version": self._document.version,
                "action": self._action,
                "parameters": parameters,
                "credentials": credentials,
                "outputs": dict(self._produced),
                "images": {name: image.as_template_value() for name, image in self._images.items()},
            },
            "installation": {"name": self._installation_name},
        }
