"""Helper functionality that is used in other modules of this package."""

from __future__ import annotations

import posixpath

from twirp_ts_generator.proto_types import JSON_SUFFIX, PROTO_FILE_SUFFIXES, TS_SUFFIX

INDENT = "    "
TO_JSON_SUFFIX = "ToJSON"
FROM_JSON_PREFIX = "JSONTo"


def resolve(qualified_name: str, package: str) -> str:
    """Convert a fully qualified protobuf type name into a local TypeScript identifier.

    The package prefix is removed and the remaining scopes are joined by underscores.
    E.g. `.pkg.Outer.Inner` in the package `pkg` becomes `Outer_Inner`.
    Names outside of the package keep their package, e.g. `.google.protobuf.Empty`
    becomes `google_protobuf_Empty`.

    Args:
        qualified_name (str): The type name, as found in a descriptor.
        package (str): The package of the compiled file.

    Returns:
        str: The local type name.
    """
    name = qualified_name.lstrip(".")

    if package and name.startswith(package + "."):
        name = name[len(package) + 1 :]

    return name.replace(".", "_")


def camel_case(name: str) -> str:
    """Converts a snake_case name to lowerCamelCase.

    E.g. `foo_bar_baz` becomes `fooBarBaz`. Empty segments are dropped.

    Args:
        name (str): The original name.

    Returns:
        str: The lowerCamelCase name.
    """
    parts = name.split("_")
    head, tail = parts[0], parts[1:]

    return head.lower() + "".join(p[:1].upper() + p[1:].lower() for p in tail)


def lower_first(name: str) -> str:
    """Lowercase the first character of a name, e.g. `GetUser` becomes `getUser`."""
    return name[:1].lower() + name[1:]


def ts_module_filename(proto_file_name: str) -> str:
    """The name of the TypeScript module generated for a schema file.

    For example, `rpc/haberdasher/service.proto` becomes `service.ts`.
    Names without a known schema suffix keep their full path, e.g. `svc` becomes `svc.ts`.

    Args:
        proto_file_name (str): The name of the schema file, as found in its descriptor.

    Returns:
        str: The name of the generated module.
    """
    name = proto_file_name

    if posixpath.splitext(name)[1] in PROTO_FILE_SUFFIXES:
        name = posixpath.splitext(posixpath.basename(name))[0]

    return name + TS_SUFFIX


def json_type(type_name: str) -> str:
    """The wire JSON variant of a model type name, e.g. `User` becomes `UserJSON`."""
    return f"{type_name}{JSON_SUFFIX}"


def to_json_function(type_name: str) -> str:
    """The name of the generated function converting a model to wire JSON."""
    return f"{type_name}{TO_JSON_SUFFIX}"


def from_json_function(type_name: str) -> str:
    """The name of the generated function converting wire JSON to a model."""
    return f"{FROM_JSON_PREFIX}{type_name}"


def indent(line: str, level: int = 1) -> str:
    """Indent a line by `level` indentation steps, leaving empty lines empty."""
    if not line:
        return line
    return f"{INDENT * level}{line}"


def new_interface_declaration(name: str, exported: bool = True) -> str:
    """Opening line of an interface declaration.

    Args:
        name (str): The name of the interface.
        exported (bool): Whether the interface is exported from the module.

    Returns:
        str: The declaration line.
    """
    keyword = "export interface" if exported else "interface"
    return f"{keyword} {name} {{"


def new_index_signature(value_type: str) -> str:
    """A string-keyed index signature, as used for protobuf maps."""
    return f"[key: string]: {value_type};"
