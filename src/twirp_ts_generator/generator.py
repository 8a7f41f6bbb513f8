"""Compile file descriptors into the files of a TypeScript client package."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from google.protobuf.descriptor_pb2 import FileDescriptorProto

from twirp_ts_generator import helper, proto_types, runtime
from twirp_ts_generator.builder import ContextBuilder
from twirp_ts_generator.writer import Writer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratorOptions:
    """Options shared by the protoc plugin and the command-line interface.

    Attributes:
        twirp_version: The Twirp version of the target server; `v6` drops the `/twirp` route prefix.
        package_name: If set, an index module, a tsconfig and a package manifest with this name are added.
    """

    twirp_version: str = ""
    package_name: str = ""

    @classmethod
    def from_parameter(cls, parameter: str) -> GeneratorOptions:
        """Parse the protoc parameter string, e.g. `version=v6,package_name=my-client`.

        Unknown keys are ignored.
        """
        values: dict[str, str] = {}
        for chunk in parameter.split(","):
            key, _, value = chunk.partition("=")
            key = key.strip()
            if key:
                values[key] = value.strip()

        return cls(twirp_version=values.get("version", ""), package_name=values.get("package_name", ""))


@dataclass(frozen=True)
class GeneratedFile:
    """A single output file."""

    name: str
    content: str


def generate_client_module(file_descriptor: FileDescriptorProto, options: GeneratorOptions) -> GeneratedFile | None:
    """Generate the client module of a single schema.

    Args:
        file_descriptor (FileDescriptorProto): The schema to compile.
        options (GeneratorOptions): The generator options.

    Returns:
        GeneratedFile | None: The client module, or None for the timestamp schema, which
            needs no client of its own.

    Raises:
        GeneratorError: If the schema cannot be compiled.
    """
    if file_descriptor.name == proto_types.TIMESTAMP_PROTO_FILE:
        logger.debug("Skipping '%s'.", file_descriptor.name)
        return None

    ctx = ContextBuilder(file_descriptor, twirp_version=options.twirp_version).build()
    content = Writer(ctx).dumps()

    return GeneratedFile(name=helper.ts_module_filename(file_descriptor.name), content=content)


def generate(file_descriptors: Iterable[FileDescriptorProto], options: GeneratorOptions) -> list[GeneratedFile]:
    """Generate the client modules of several schemas, followed by the support files.

    Nothing is returned if any schema fails to compile: the error propagates to the caller.

    Args:
        file_descriptors (Iterable[FileDescriptorProto]): The schemas to compile, in order.
        options (GeneratorOptions): The generator options.

    Returns:
        list[GeneratedFile]: The client modules, the runtime library and, if a package name
            was given, the package files.

    Raises:
        GeneratorError: If any schema cannot be compiled.
    """
    files: list[GeneratedFile] = []

    for file_descriptor in file_descriptors:
        module = generate_client_module(file_descriptor, options)
        if module is not None:
            logger.info("Generated '%s' from '%s'.", module.name, file_descriptor.name)
            files.append(module)

    if not files:
        return files

    module_names = [f.name for f in files]
    files.append(GeneratedFile(*runtime.runtime_library()))

    if options.package_name:
        files.append(GeneratedFile(*runtime.package_index(module_names)))
        files.append(GeneratedFile(*runtime.tsconfig()))
        files.append(GeneratedFile(*runtime.package_json(options.package_name)))

    return files
