"""Generate the TypeScript client module for a built `APIContext`.

The output is a pure function of the context: models, enums and services are written in
the order they were registered, so the same context always produces the same text.
"""

from __future__ import annotations

import logging

from twirp_ts_generator import helper
from twirp_ts_generator.model import APIContext, Enum, GeneratorError, Model, ModelField, Service, ServiceMethod

logger = logging.getLogger(__name__)

RUNTIME_IMPORT = "import {createTwirpRequest, throwTwirpError, Fetch} from './twirp';"


class RenderError(GeneratorError):
    """Raised when a context does not satisfy the expectations of the client module."""


def marshal_expression(model_field: ModelField) -> str:
    """The expression converting a field of a model `m` into its wire JSON value.

    Timestamps are already canonical RFC 3339 strings on both sides and pass through,
    as do scalars, enums and maps with primitive values.

    Args:
        model_field (ModelField): The field to convert.

    Returns:
        str: The TypeScript expression.
    """
    value = f"m.{model_field.name}"

    if model_field.is_repeated and not model_field.is_map and model_field.is_message:
        return f"{value} && {value}.map({helper.to_json_function(model_field.base_type)})"

    if model_field.is_message and not model_field.map_value_type_primitive:
        return f"{value} && {helper.to_json_function(model_field.type)}({value})"

    return value


def unmarshal_expression(model_field: ModelField) -> str:
    """The expression converting a wire JSON field of `m` back into its model value.

    This mirrors `marshal_expression`.

    Args:
        model_field (ModelField): The field to convert.

    Returns:
        str: The TypeScript expression.
    """
    value = f"m.{model_field.wire_name}"

    if model_field.is_repeated and not model_field.is_map and model_field.is_message:
        return f"{value} && {value}.map({helper.from_json_function(model_field.base_type)})"

    if model_field.is_message and not model_field.map_value_type_primitive:
        return f"{value} && {helper.from_json_function(model_field.type)}({value})"

    return value


class Writer:
    """A class that handles writing the client module, based on a built context."""

    def __init__(self, ctx: APIContext):
        """Initialize the writer.

        Args:
            ctx (APIContext): The context to write. It is only read, never modified.
        """
        self.ctx = ctx
        self.lines: list[str] = []

    def _add(self, line: str = "", level: int = 0) -> None:
        self.lines.append(helper.indent(line, level))

    def gen_enum(self, enum: Enum) -> None:
        """Generate an enum whose members carry their own names as string values."""
        self._add()
        self._add(f"export enum {enum.name} {{")
        for value in enum.values:
            self._add(f'{value} = "{value}",', 1)
        self._add("}")

    def _gen_interfaces(self, model: Model) -> None:
        """Generate the model interface and its wire JSON counterpart."""
        self._add()
        self._add(helper.new_interface_declaration(model.name))
        if model.is_map:
            self._add(helper.new_index_signature(model.map_value_type), 1)
        else:
            for model_field in model.fields:
                self._add(f"{model_field.name}?: {model_field.type};", 1)
        self._add("}")

        self._add()
        self._add(helper.new_interface_declaration(helper.json_type(model.name), exported=False))
        if model.is_map:
            value_type = model.map_value_type
            if not model.map_value_type_primitive:
                value_type = helper.json_type(value_type)
            self._add(helper.new_index_signature(value_type), 1)
        else:
            for model_field in model.fields:
                self._add(f"{model_field.wire_name}?: {model_field.wire_type};", 1)
        self._add("}")

    def _gen_map_reduce(self, model: Model, converter: str) -> None:
        self._add("return Object.keys(m).reduce((acc, key) => {", 1)
        self._add(f"acc[key] = {converter}(m[key]);", 2)
        self._add("return acc;", 2)
        self._add(f"}}, {{}} as {model.name});", 1)

    def gen_to_json(self, model: Model) -> None:
        """Generate the function converting a model into its wire JSON representation."""
        name = model.name
        self._add()
        self._add(f"const {helper.to_json_function(name)} = (m: {name}): {helper.json_type(name)} => {{")
        if model.is_map:
            self._gen_map_reduce(model, helper.to_json_function(model.map_value_type))
        else:
            self._add("return {", 1)
            for model_field in model.fields:
                self._add(f"{model_field.wire_name}: {marshal_expression(model_field)},", 2)
            self._add("};", 1)
        self._add("};")

    def gen_from_json(self, model: Model) -> None:
        """Generate the function converting wire JSON back into a model."""
        name = model.name
        self._add()
        self._add(f"const {helper.from_json_function(name)} = (m: {helper.json_type(name)}): {name} => {{")
        if model.is_map:
            self._gen_map_reduce(model, helper.from_json_function(model.map_value_type))
        else:
            self._add("return {", 1)
            for model_field in model.fields:
                self._add(f"{model_field.name}: {unmarshal_expression(model_field)},", 2)
            self._add("};", 1)
        self._add("};")

    def gen_model(self, model: Model) -> None:
        """Generate the interfaces of a model and the converters its flags ask for.

        Maps with primitive values are plain objects on both sides and get no converters.

        Raises:
            RenderError: If a map model has no value type.
        """
        if model.primitive:
            return

        if model.is_map and not model.map_value_type:
            raise RenderError(f"Map model '{model.name}' has no 'value' field.")

        self._gen_interfaces(model)

        if model.is_map and model.map_value_type_primitive:
            return

        if model.can_marshal:
            self.gen_to_json(model)

        if model.can_unmarshal:
            self.gen_from_json(model)

    def _check_method(self, service: Service, method: ServiceMethod) -> None:
        """Make sure the converters a client method calls are generated.

        Raises:
            RenderError: If the input model cannot be marshaled or the output model cannot be unmarshaled.
        """
        try:
            input_model = self.ctx.get_model(method.input_type)
            output_model = self.ctx.get_model(method.output_type)

        except GeneratorError as e:
            raise RenderError(f"Method '{service.name}.{method.path}' refers to an unknown model.") from e

        if input_model.primitive or not input_model.can_marshal:
            raise RenderError(f"Input '{input_model.name}' of '{service.name}.{method.path}' cannot be marshaled.")

        if output_model.primitive or not output_model.can_unmarshal:
            raise RenderError(f"Output '{output_model.name}' of '{service.name}.{method.path}' cannot be unmarshaled.")

    def gen_service_interface(self, service: Service) -> None:
        """Generate the interface describing the capabilities of a service."""
        self._add()
        self._add(helper.new_interface_declaration(service.name))
        for method in service.methods:
            self._add(f"{method.name}: ({method.input_arg}: {method.input_type}) => Promise<{method.output_type}>;", 1)
        self._add("}")

    def gen_client_method(self, method: ServiceMethod) -> None:
        """Generate a client method that posts its input to the service and parses the response."""
        arg, input_type = method.input_arg, method.input_type

        self._add()
        self._add(f"{method.name}({arg}: {input_type}): Promise<{method.output_type}> {{", 1)
        self._add(f'const url = this.hostname + this.pathPrefix + "{method.path}";', 2)
        self._add(f"let body: {input_type} | {helper.json_type(input_type)} = {arg};", 2)
        self._add("if (!this.writeCamelCase) {", 2)
        self._add(f"body = {helper.to_json_function(input_type)}({arg});", 3)
        self._add("}", 2)
        self._add("return this.fetch(createTwirpRequest(url, body, this.optionsOverride)).then((resp) => {", 2)
        self._add("if (!resp.ok) {", 3)
        self._add("return throwTwirpError(resp);", 4)
        self._add("}", 3)
        self._add()
        self._add(f"return resp.json().then({helper.from_json_function(method.output_type)});", 3)
        self._add("});", 2)
        self._add("}", 1)

    def gen_client_class(self, service: Service) -> None:
        """Generate the default client implementation of a service."""
        path_prefix = f"{self.ctx.twirp_prefix}/{service.package}.{service.name}/"

        self._add()
        self._add(f"export class {service.name}Client implements {service.name} {{")
        self._add("private hostname: string;", 1)
        self._add("private fetch: Fetch;", 1)
        self._add("private writeCamelCase: boolean;", 1)
        self._add(f'private pathPrefix = "{path_prefix}";', 1)
        self._add("private optionsOverride: object;", 1)
        self._add()
        self._add(
            "constructor(hostname: string, fetch: Fetch, writeCamelCase = false, optionsOverride: any = {}) {", 1
        )
        self._add("this.hostname = hostname;", 2)
        self._add("this.fetch = fetch;", 2)
        self._add("this.writeCamelCase = writeCamelCase;", 2)
        self._add("this.optionsOverride = optionsOverride;", 2)
        self._add("}", 1)

        for method in service.methods:
            self._check_method(service, method)
            self.gen_client_method(method)

        self._add("}")

    def generate_all(self) -> None:
        """Generate all enums, models and services of the context."""
        self.lines = [RUNTIME_IMPORT]

        for enum in self.ctx.enums:
            self.gen_enum(enum)

        for model in self.ctx.models:
            self.gen_model(model)

        for service in self.ctx.services:
            self.gen_service_interface(service)
            self.gen_client_class(service)

    def dumps(self) -> str:
        """Generates the string output of the client module.

        Returns:
            str: The output string.
        """
        self.generate_all()
        logger.debug("Rendered %d line(s) for package '%s'.", len(self.lines), self.ctx.package)
        return "\n".join(self.lines) + "\n"
