"""Top-level module for generating clients from descriptor set files."""

from __future__ import annotations

import argparse
import glob
import logging
import os.path
import subprocess

from google.protobuf.descriptor_pb2 import FileDescriptorProto, FileDescriptorSet
from google.protobuf.message import DecodeError

from twirp_ts_generator import proto_types
from twirp_ts_generator.generator import GeneratedFile, GeneratorOptions, generate
from twirp_ts_generator.model import GeneratorError

logger = logging.getLogger(__name__)

DESCRIPTOR_SET_SUFFIXES = (".pb", ".binpb", ".desc")


class DescriptorSetError(GeneratorError):
    """Raised when a descriptor set file cannot be read."""


class TypeScriptValidationError(GeneratorError):
    """Raised when tsc finds type errors in generated clients."""


def load_descriptor_set(path: str) -> FileDescriptorSet:
    """Load a binary `FileDescriptorSet`, as written by `protoc --descriptor_set_out`.

    Args:
        path (str): The path of the descriptor set file.

    Returns:
        FileDescriptorSet: The parsed descriptor set.

    Raises:
        DescriptorSetError: If the file cannot be read or parsed.
    """
    descriptor_set = FileDescriptorSet()

    try:
        with open(path, "rb") as f:
            descriptor_set.ParseFromString(f.read())

    except (OSError, DecodeError) as e:
        raise DescriptorSetError(f"Could not load descriptor set '{path}': {e}") from e

    return descriptor_set


def validate_with_tsc(output_files: list[str]) -> None:
    """Type-check generated clients with the TypeScript compiler.

    Args:
        output_files: The generated `*.ts` files.

    Raises:
        TypeScriptValidationError: If tsc is missing or finds any type errors.
    """
    ts_files = [f for f in output_files if f.endswith(proto_types.TS_SUFFIX)]

    if not ts_files:
        logger.warning("No TypeScript files found to validate")
        return

    logger.info("Validating %d generated file(s) with tsc...", len(ts_files))

    try:
        result = subprocess.run(
            ["tsc", "--noEmit", "--strict", "--lib", "es2017,dom"] + ts_files,
            capture_output=True,
            text=True,
            check=False,
        )

    except FileNotFoundError as e:
        raise TypeScriptValidationError("tsc command not found. Please install typescript.") from e

    if result.returncode != 0:
        error_msg = f"tsc validation failed:\n\n{result.stdout}"
        logger.error(error_msg)
        raise TypeScriptValidationError(error_msg)

    logger.info("tsc validation passed")


def generate_clients(
    descriptor_set_paths: list[str],
    options: GeneratorOptions,
    output_directory: str,
) -> list[str]:
    """Generate one client package out of the schemas of several descriptor sets.

    The client modules of all sets share one runtime library and, if a package name is
    given, one index module. Well-known schemas under `google/protobuf/` are not compiled,
    and a schema contained in several sets is compiled once. Nothing is written unless all
    schemas compile.

    Args:
        descriptor_set_paths (list[str]): The descriptor set files, in order.
        options (GeneratorOptions): The generator options.
        output_directory (str): Where to write the outputs.

    Returns:
        list[str]: The paths of the written files.

    Raises:
        GeneratorError: If a descriptor set cannot be loaded or compiled.
    """
    file_descriptors: dict[str, FileDescriptorProto] = {}
    for descriptor_set_path in descriptor_set_paths:
        for file_descriptor in load_descriptor_set(descriptor_set_path).file:
            if file_descriptor.name.startswith(proto_types.WELL_KNOWN_PROTO_PREFIX):
                continue
            file_descriptors.setdefault(file_descriptor.name, file_descriptor)

    generated_files: list[GeneratedFile] = generate(file_descriptors.values(), options)

    os.makedirs(output_directory, exist_ok=True)

    written = []
    for generated in generated_files:
        output_path = os.path.join(output_directory, generated.name)
        with open(output_path, "w", encoding="utf8") as output_file:
            output_file.write(generated.content)
        written.append(output_path)

    logger.info(
        "Wrote %d file(s) for %d descriptor set(s) to '%s'.", len(written), len(descriptor_set_paths), output_directory
    )
    return written


def find_descriptor_sets(paths: list[str], root_directory: str, recursive: bool) -> set[str]:
    """Find descriptor set files from paths, directories and glob expressions.

    Args:
        paths (list[str]): Paths, directories or glob expressions, relative to the root directory.
        root_directory (str): The directory the paths are relative to.
        recursive (bool): Whether to search directories and `**` expressions recursively.

    Returns:
        set[str]: The matching files.
    """
    search_paths: set[str] = set()

    for path in paths:
        search_path = os.path.join(root_directory, path)

        if recursive and os.path.isdir(search_path):
            for root, _, files in os.walk(search_path):
                for file in files:
                    if file.endswith(DESCRIPTOR_SET_SUFFIXES):
                        search_paths.add(os.path.join(root, file))

        elif os.path.isdir(search_path):
            for file in os.listdir(search_path):
                file_path = os.path.join(search_path, file)
                if os.path.isfile(file_path) and file.endswith(DESCRIPTOR_SET_SUFFIXES):
                    search_paths.add(file_path)

        else:
            search_paths = search_paths.union(glob.glob(search_path, recursive=recursive))

    return search_paths


def run(args: argparse.Namespace, root_directory: str) -> list[str]:
    """Run the generator on a set of paths that point to descriptor set files.

    Descriptor sets are grouped by their output directory, which is the `--output-dir`
    for all of them or, without one, the directory of each set. Each group is passed to
    `generate_clients` once, so that the runtime library and package files of a directory
    cover all of its client modules.

    Args:
        args (argparse.Namespace): The arguments that were passed when calling the generator.
        root_directory (str): The directory, from which the generator is executed.

    Returns:
        list[str]: The paths of all written files.

    Raises:
        GeneratorError: If any descriptor set fails to compile, or tsc validation fails.
    """
    paths: list[str] = args.paths
    excludes: list[str] = args.excludes
    clean: list[str] = args.clean
    output_dir: str = getattr(args, "output_dir", "")
    validate: bool = getattr(args, "tsc", False)

    options = GeneratorOptions(
        twirp_version=getattr(args, "twirp_version", ""),
        package_name=getattr(args, "package_name", ""),
    )

    cleanup_paths: set[str] = set()
    for c in clean:
        cleanup_directory = os.path.join(root_directory, c)
        cleanup_paths = cleanup_paths.union(glob.glob(cleanup_directory, recursive=args.recursive))

    for cleanup_path in sorted(cleanup_paths):
        if not os.path.isfile(cleanup_path):
            logger.debug("Not cleaning up '%s', only files are removed.", cleanup_path)
            continue
        os.remove(cleanup_path)

    excluded_paths = find_descriptor_sets(excludes, root_directory, args.recursive)

    # The `valid_paths` contain the automatically detected search paths, except for specifically excluded paths.
    valid_paths = find_descriptor_sets(paths, root_directory, args.recursive) - excluded_paths

    if not valid_paths:
        logger.warning("No descriptor sets found for %s.", paths)
        return []

    groups: dict[str, list[str]] = {}
    for path in sorted(valid_paths):
        output_directory = os.path.join(root_directory, output_dir) if output_dir else os.path.dirname(path)
        groups.setdefault(output_directory, []).append(path)

    written: list[str] = []
    for output_directory, descriptor_set_paths in groups.items():
        written.extend(generate_clients(descriptor_set_paths, options, output_directory))

    if validate:
        validate_with_tsc(written)

    return written
