"""Build the object model of a protobuf file descriptor."""

from __future__ import annotations

import logging

from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    FieldDescriptorProto,
    FileDescriptorProto,
    ServiceDescriptorProto,
)

from twirp_ts_generator import helper, proto_types
from twirp_ts_generator.model import (
    DATE_MODEL_NAME,
    APIContext,
    Enum,
    GeneratorError,
    Model,
    ModelField,
    Service,
    ServiceMethod,
    apply_marshal_flags,
    seed_marshal_flags,
)

logger = logging.getLogger(__name__)

MAP_VALUE_FIELD = "value"


class UnsupportedShapeError(GeneratorError):
    """Raised when a schema uses a construct that cannot be represented in the client."""


class ContextBuilder:
    """Builds an `APIContext` out of a single file descriptor.

    Nesting is supported for exactly one level: messages and enums declared inside a
    top-level message become `Outer_Inner`. Declarations nested deeper than that are
    not part of the context.
    """

    def __init__(self, file_descriptor: FileDescriptorProto, twirp_version: str = "") -> None:
        """Initialize the builder.

        Args:
            file_descriptor (FileDescriptorProto): The schema to build the context for.
            twirp_version (str): The Twirp version of the target server.
        """
        self._file = file_descriptor
        self.ctx = APIContext(package=file_descriptor.package, twirp_version=twirp_version)

    def resolve(self, type_name: str) -> str:
        """Resolve a fully qualified type name within the package of this file."""
        return helper.resolve(type_name, self.ctx.package)

    def map_type(self, field: FieldDescriptorProto, is_map: bool = False) -> tuple[str, str]:
        """Map a field onto its TypeScript type and its wire JSON type.

        Args:
            field (FieldDescriptorProto): The field to map.
            is_map (bool): Whether the field refers to a map entry model. Map fields are
                keyed objects and never become arrays.

        Returns:
            tuple[str, str]: The TypeScript type and the wire JSON type.

        Raises:
            UnsupportedShapeError: If the field kind has no TypeScript counterpart.
        """
        if field.type in proto_types.PROTO_SCALAR_TO_TS:
            ts_type = wire_type = proto_types.PROTO_SCALAR_TO_TS[field.type]

        elif field.type == proto_types.ProtoFieldType.MESSAGE:
            if field.type_name == proto_types.TIMESTAMP_TYPE_NAME:
                # Timestamps are RFC 3339 strings in the wire JSON already.
                ts_type = wire_type = "string"
            else:
                ts_type = self.resolve(field.type_name)
                wire_type = helper.json_type(ts_type)

        elif field.type == proto_types.ProtoFieldType.ENUM:
            ts_type = wire_type = self.resolve(field.type_name)

        else:
            raise UnsupportedShapeError(
                f"Field '{field.name}' of kind {FieldDescriptorProto.Type.Name(field.type)} is not supported."
            )

        if proto_types.is_repeated(field) and not is_map:
            ts_type += "[]"
            wire_type += "[]"

        return ts_type, wire_type

    def new_field(self, field: FieldDescriptorProto) -> ModelField:
        """Create a model field, consulting the lookup table for map entry models."""
        referenced = self.ctx.lookup(self.resolve(field.type_name)) if field.type_name else None
        is_map = referenced is not None and referenced.is_map
        is_timestamp = field.type_name == proto_types.TIMESTAMP_TYPE_NAME

        ts_type, wire_type = self.map_type(field, is_map)

        return ModelField(
            name=helper.camel_case(field.name),
            wire_name=field.name,
            type=ts_type,
            wire_type=wire_type,
            is_message=field.type == proto_types.ProtoFieldType.MESSAGE and not is_timestamp,
            is_repeated=proto_types.is_repeated(field),
            is_map=is_map,
            map_value_type_primitive=is_map and referenced.map_value_type_primitive,
            is_timestamp=is_timestamp,
        )

    def gen_enum(self, enum: EnumDescriptorProto, scope: str = "") -> Enum:
        """Generate an enum, mangling its name with the enclosing message, if any."""
        name = f"{scope}_{enum.name}" if scope else enum.name
        return Enum(name=name, values=tuple(value.name for value in enum.value))

    def gen_nested_model(self, message: DescriptorProto, scope: str) -> Model:
        """Generate a model for a message (or map entry) declared inside a top-level message."""
        model = Model(name=f"{scope}_{message.name}", is_map=message.options.map_entry)

        for field in message.field:
            model_field = self.new_field(field)

            if model.is_map and model_field.name == MAP_VALUE_FIELD:
                model.map_value_type = model_field.type
                # Timestamps are strings on both sides, like scalars and enums.
                model.map_value_type_primitive = not model_field.is_message

            model.fields.append(model_field)

        for nested in message.nested_type:
            logger.debug("Skipping '%s.%s', only one level of nesting is supported.", model.name, nested.name)

        return model

    def gen_model(self, message: DescriptorProto) -> Model:
        """Generate a top-level message, its nested enums and its nested models.

        Nested models are registered before the fields of the message are resolved,
        so that map fields can find their entry models in the lookup table.
        """
        for enum in message.enum_type:
            self.ctx.enums.append(self.gen_enum(enum, scope=message.name))

        for nested in message.nested_type:
            self.ctx.add_model(self.gen_nested_model(nested, scope=message.name))

        model = Model(name=message.name)
        for field in message.field:
            model.fields.append(self.new_field(field))

        return model

    def gen_service(self, service: ServiceDescriptorProto) -> Service:
        """Generate a service and the signatures of its methods."""
        new_service = Service(name=service.name, package=self.ctx.package)

        for method in service.method:
            input_type = self.resolve(method.input_type)
            new_service.methods.append(
                ServiceMethod(
                    name=helper.lower_first(method.name),
                    path=method.name,
                    input_arg=helper.lower_first(input_type),
                    input_type=input_type,
                    output_type=self.resolve(method.output_type),
                )
            )

        return new_service

    def build(self) -> APIContext:
        """Build the full context, including the marshal flags of all models.

        Returns:
            APIContext: The finished context, ready to be rendered.

        Raises:
            MalformedSchemaError: If a referenced type is not defined in this file.
            UnsupportedShapeError: If a field cannot be represented.
        """
        for enum in self._file.enum_type:
            self.ctx.enums.append(self.gen_enum(enum))

        for message in self._file.message_type:
            self.ctx.add_model(self.gen_model(message))

        for service in self._file.service:
            self.ctx.services.append(self.gen_service(service))

        seed_marshal_flags(self.ctx)

        # A message of the same name takes precedence, timestamp fields never look the sentinel up.
        if self.ctx.lookup(DATE_MODEL_NAME) is None:
            self.ctx.add_model(Model(name=DATE_MODEL_NAME, primitive=True))

        apply_marshal_flags(self.ctx)

        logger.debug(
            "Built context for '%s': %d model(s), %d enum(s), %d service(s).",
            self._file.name,
            len(self.ctx.models),
            len(self.ctx.enums),
            len(self.ctx.services),
        )
        return self.ctx
