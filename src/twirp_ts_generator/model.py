"""Object model for one compilation unit.

This module contains the data objects that the context builder fills in and the
writer renders: enums, models (messages and synthesized map entries), their fields
and the services with their methods. All of them are owned by one `APIContext`.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

TWIRP_PREFIX = "/twirp"
TWIRP_V6 = "v6"

# Opaque scalar standing in for google.protobuf.Timestamp values.
DATE_MODEL_NAME = "Date"


class GeneratorError(Exception):
    """Base class for all errors that abort the compilation of a schema."""


class MalformedSchemaError(GeneratorError):
    """Raised when a referenced type cannot be found in the lookup table, or a name is registered twice."""


@dataclass(frozen=True)
class Enum:
    """An enum declaration, with its value names in declaration order."""

    name: str
    values: tuple[str, ...] = ()


@dataclass
class ModelField:
    """A single field of a model.

    Attributes:
        name: The TypeScript property name (lowerCamelCase).
        wire_name: The property name in the wire JSON (the original field name).
        type: The TypeScript type of the property.
        wire_type: The type of the property in the wire JSON interface.
        is_message: Whether the field refers to another model (timestamps excluded).
        is_repeated: Whether the field is a repeated field, including map fields.
        is_map: Whether the field refers to a synthesized map entry model.
        map_value_type_primitive: Whether the referenced map model has a non-message value type.
        is_timestamp: Whether the field holds a well-known timestamp.
    """

    name: str
    wire_name: str
    type: str
    wire_type: str
    is_message: bool = False
    is_repeated: bool = False
    is_map: bool = False
    map_value_type_primitive: bool = False
    is_timestamp: bool = False

    @property
    def base_type(self) -> str:
        """The type without the array suffix of repeated fields."""
        if self.is_repeated and self.type.endswith("[]"):
            return self.type[: -len("[]")]
        return self.type


@dataclass
class Model:
    """A message type or a synthesized map entry type."""

    name: str
    fields: list[ModelField] = field(default_factory=list)
    can_marshal: bool = False
    can_unmarshal: bool = False
    is_map: bool = False
    map_value_type: str = ""
    map_value_type_primitive: bool = False
    primitive: bool = False


@dataclass(frozen=True)
class ServiceMethod:
    """A single rpc of a service."""

    name: str
    path: str
    input_arg: str
    input_type: str
    output_type: str


@dataclass
class Service:
    """A service declaration and its methods."""

    name: str
    package: str
    methods: list[ServiceMethod] = field(default_factory=list)


class APIContext:
    """Everything that is known about one compilation unit.

    The lookup table maps model names to models and is the only way fields are resolved
    to the models they refer to. Fields store type names, not references, so that a field
    may be built before the model it refers to.
    """

    def __init__(self, package: str = "", twirp_version: str = "") -> None:
        """Initialize an empty context.

        Args:
            package (str): The protobuf package of the compiled file.
            twirp_version (str): The Twirp version of the target server. `v6` servers
                are addressed without a route prefix.
        """
        self.package = package
        self.twirp_prefix = "" if twirp_version == TWIRP_V6 else TWIRP_PREFIX
        self.models: list[Model] = []
        self.services: list[Service] = []
        self.enums: list[Enum] = []
        self._model_lookup: dict[str, Model] = {}

    def add_model(self, model: Model) -> None:
        """Register a model, in order, and make it available to the lookup table.

        Raises:
            MalformedSchemaError: If a model of the same name is already registered.
        """
        if model.name in self._model_lookup:
            raise MalformedSchemaError(f"Model '{model.name}' is defined more than once.")

        self.models.append(model)
        self._model_lookup[model.name] = model

    def lookup(self, name: str) -> Model | None:
        """Return the model registered under `name`, if any."""
        return self._model_lookup.get(name)

    def get_model(self, name: str, reference: str = "") -> Model:
        """Return the model registered under `name`.

        Args:
            name (str): The model name.
            reference (str): What refers to the model, for the error message.

        Raises:
            MalformedSchemaError: If no such model is registered.
        """
        try:
            return self._model_lookup[name]

        except KeyError as e:
            detail = f" for {reference}" if reference else ""
            raise MalformedSchemaError(f"Could not find model of type '{name}'{detail}.") from e


def seed_marshal_flags(ctx: APIContext) -> None:
    """Flag the models that are used as the input or output of an rpc.

    Inputs have to be converted to wire JSON, outputs have to be converted from it.

    Raises:
        MalformedSchemaError: If a method refers to a model that is not defined.
    """
    for service in ctx.services:
        for method in service.methods:
            reference = f"method '{service.name}.{method.path}'"
            ctx.get_model(method.input_type, reference).can_marshal = True
            ctx.get_model(method.output_type, reference).can_unmarshal = True


def _field_models(ctx: APIContext, model: Model) -> list[Model]:
    """Models referred to by the message fields of a model, in field order."""
    referenced = []
    for model_field in model.fields:
        # Scalars, enums and timestamps need no conversion.
        if not model_field.is_message:
            continue

        referenced_model = ctx.get_model(model_field.base_type, f"field '{model.name}.{model_field.name}'")
        if not referenced_model.primitive:
            referenced.append(referenced_model)

    return referenced


def _enable(ctx: APIContext, seeds: list[Model], flag: str) -> None:
    """Set `flag` on every model reachable from the seeds through message fields."""
    visited: set[str] = set()
    queue = deque(seeds)

    while queue:
        model = queue.popleft()
        if model.name in visited:
            continue

        visited.add(model.name)
        setattr(model, flag, True)
        queue.extend(_field_models(ctx, model))


def apply_marshal_flags(ctx: APIContext) -> None:
    """Propagate the marshal and unmarshal flags to all models the flagged models refer to.

    The flagged sets after this call are the reachability closures of the seeded models,
    which restricts generated converters to models that are actually sent over the wire.
    Cyclic message graphs are fine. Calling this again on a flagged context changes nothing.

    Raises:
        MalformedSchemaError: If a message field refers to a model that is not defined.
    """
    _enable(ctx, [m for m in ctx.models if m.can_marshal and not m.primitive], "can_marshal")
    _enable(ctx, [m for m in ctx.models if m.can_unmarshal and not m.primitive], "can_unmarshal")

    logger.debug(
        "Marshal flags applied: %d model(s) marshal, %d model(s) unmarshal.",
        sum(m.can_marshal for m in ctx.models),
        sum(m.can_unmarshal for m in ctx.models),
    )
