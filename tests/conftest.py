"""Pytest configuration and fixtures for the client generator tests.

Schemas are built as `FileDescriptorProto` messages directly, so no protoc binary is needed.
"""

from __future__ import annotations

import pytest
from google.protobuf.descriptor_pb2 import DescriptorProto, FieldDescriptorProto, FileDescriptorProto

from twirp_ts_generator.builder import ContextBuilder
from twirp_ts_generator.model import APIContext

OPTIONAL = FieldDescriptorProto.LABEL_OPTIONAL
REPEATED = FieldDescriptorProto.LABEL_REPEATED

STRING = FieldDescriptorProto.TYPE_STRING
INT64 = FieldDescriptorProto.TYPE_INT64
INT32 = FieldDescriptorProto.TYPE_INT32
BOOL = FieldDescriptorProto.TYPE_BOOL
MESSAGE = FieldDescriptorProto.TYPE_MESSAGE
ENUM = FieldDescriptorProto.TYPE_ENUM

TIMESTAMP = ".google.protobuf.Timestamp"


def add_field(
    message: DescriptorProto,
    name: str,
    field_type: int,
    type_name: str = "",
    label: int = OPTIONAL,
) -> FieldDescriptorProto:
    """Add a field to a message, numbering fields in declaration order."""
    field = message.field.add(name=name, number=len(message.field) + 1, type=field_type, label=label)
    if type_name:
        field.type_name = type_name
    return field


def add_map_field(message: DescriptorProto, package: str, name: str, value_type: int, value_type_name: str = ""):
    """Add a `map<string, ...>` field the way protoc represents it, with a synthesized entry message."""
    entry_name = "".join(p[:1].upper() + p[1:] for p in name.split("_")) + "Entry"

    entry = message.nested_type.add(name=entry_name)
    entry.options.map_entry = True
    add_field(entry, "key", STRING)
    add_field(entry, "value", value_type, value_type_name)

    return add_field(message, name, MESSAGE, f".{package}.{message.name}.{entry_name}", label=REPEATED)


def add_method(file_descriptor: FileDescriptorProto, service_name: str, name: str, input_type: str, output_type: str):
    """Add a method to a service of the file, creating the service if needed."""
    for service in file_descriptor.service:
        if service.name == service_name:
            break
    else:
        service = file_descriptor.service.add(name=service_name)

    package = file_descriptor.package
    return service.method.add(name=name, input_type=f".{package}.{input_type}", output_type=f".{package}.{output_type}")


def build(file_descriptor: FileDescriptorProto, twirp_version: str = "") -> APIContext:
    """Build the context of a schema."""
    return ContextBuilder(file_descriptor, twirp_version=twirp_version).build()


@pytest.fixture
def ping_file() -> FileDescriptorProto:
    """`package svc; service Pinger { rpc Ping(PingRequest) returns (PongResponse); }`."""
    file_descriptor = FileDescriptorProto(name="rpc/svc/ping.proto", package="svc")

    add_field(file_descriptor.message_type.add(name="PingRequest"), "message", STRING)
    add_field(file_descriptor.message_type.add(name="PongResponse"), "reply", STRING)
    add_method(file_descriptor, "Pinger", "Ping", "PingRequest", "PongResponse")

    return file_descriptor


@pytest.fixture
def user_file() -> FileDescriptorProto:
    """A schema using nested messages, nested enums, maps, timestamps and repeated fields.

    ```
    package users;
    enum Role { ROLE_UNKNOWN = 0; ROLE_ADMIN = 1; }
    message Address { string street_name = 1; }
    message User {
        enum Status { ACTIVE = 0; BANNED = 1; }
        message Preferences { bool dark_mode = 1; }
        string user_id = 1;
        google.protobuf.Timestamp created_at = 2;
        repeated Address addresses = 3;
        map<string, int64> counts = 4;
        map<string, Address> labeled_addresses = 5;
        Preferences preferences = 6;
        Status status = 7;
        repeated Role roles = 8;
        repeated string tags = 9;
    }
    message GetUserRequest { string user_id = 1; }
    message GetUserResponse { User user = 1; }
    message Unused { Address address = 1; }
    service Users { rpc GetUser(GetUserRequest) returns (GetUserResponse); }
    ```
    """
    file_descriptor = FileDescriptorProto(name="users.proto", package="users")
    file_descriptor.dependency.append("google/protobuf/timestamp.proto")

    role = file_descriptor.enum_type.add(name="Role")
    role.value.add(name="ROLE_UNKNOWN", number=0)
    role.value.add(name="ROLE_ADMIN", number=1)

    add_field(file_descriptor.message_type.add(name="Address"), "street_name", STRING)

    user = file_descriptor.message_type.add(name="User")
    status = user.enum_type.add(name="Status")
    status.value.add(name="ACTIVE", number=0)
    status.value.add(name="BANNED", number=1)
    add_field(user.nested_type.add(name="Preferences"), "dark_mode", BOOL)

    add_field(user, "user_id", STRING)
    add_field(user, "created_at", MESSAGE, TIMESTAMP)
    add_field(user, "addresses", MESSAGE, ".users.Address", label=REPEATED)
    add_map_field(user, "users", "counts", INT64)
    add_map_field(user, "users", "labeled_addresses", MESSAGE, ".users.Address")
    add_field(user, "preferences", MESSAGE, ".users.User.Preferences")
    add_field(user, "status", ENUM, ".users.User.Status")
    add_field(user, "roles", ENUM, ".users.Role", label=REPEATED)
    add_field(user, "tags", STRING, label=REPEATED)

    add_field(file_descriptor.message_type.add(name="GetUserRequest"), "user_id", STRING)
    add_field(file_descriptor.message_type.add(name="GetUserResponse"), "user", MESSAGE, ".users.User")
    add_field(file_descriptor.message_type.add(name="Unused"), "address", MESSAGE, ".users.Address")

    add_method(file_descriptor, "Users", "GetUser", "GetUserRequest", "GetUserResponse")

    return file_descriptor


@pytest.fixture
def tree_file() -> FileDescriptorProto:
    """A cyclic schema: `message Node { string name = 1; repeated Node children = 2; Node parent = 3; }`."""
    file_descriptor = FileDescriptorProto(name="tree.proto", package="tree")

    node = file_descriptor.message_type.add(name="Node")
    add_field(node, "name", STRING)
    add_field(node, "children", MESSAGE, ".tree.Node", label=REPEATED)
    add_field(node, "parent", MESSAGE, ".tree.Node")

    add_method(file_descriptor, "Trees", "Walk", "Node", "Node")

    return file_descriptor


@pytest.fixture
def events_file() -> FileDescriptorProto:
    """Maps whose values are timestamps and enums, used as method input and output.

    ```
    package events;
    enum State { PENDING = 0; DONE = 1; }
    message Events {
        map<string, google.protobuf.Timestamp> times = 1;
        map<string, State> states = 2;
    }
    service Svc { rpc Put(Events) returns (Events); }
    ```
    """
    file_descriptor = FileDescriptorProto(name="events.proto", package="events")
    file_descriptor.dependency.append("google/protobuf/timestamp.proto")

    state = file_descriptor.enum_type.add(name="State")
    state.value.add(name="PENDING", number=0)
    state.value.add(name="DONE", number=1)

    events = file_descriptor.message_type.add(name="Events")
    add_map_field(events, "events", "times", MESSAGE, TIMESTAMP)
    add_map_field(events, "events", "states", ENUM, ".events.State")

    add_method(file_descriptor, "Svc", "Put", "Events", "Events")

    return file_descriptor
