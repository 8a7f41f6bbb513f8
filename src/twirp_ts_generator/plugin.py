"""Protocol Buffers compiler plugin entry point.

Use with `protoc --twirp_typescript_out=version=v6,package_name=my-client:./out service.proto`.
"""

from __future__ import annotations

import logging
import sys

from google.protobuf.compiler import plugin_pb2
from google.protobuf.message import DecodeError

from twirp_ts_generator.generator import GeneratorOptions, generate
from twirp_ts_generator.model import GeneratorError

logger = logging.getLogger(__name__)


def generate_code(request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
    """Compile the files protoc asks for and return a populated response message.

    A failing file fails the whole request: the response then only carries the error.

    Args:
        request (plugin_pb2.CodeGeneratorRequest): The request sent by protoc.

    Returns:
        plugin_pb2.CodeGeneratorResponse: The response to send back.
    """
    response = plugin_pb2.CodeGeneratorResponse()
    options = GeneratorOptions.from_parameter(request.parameter)

    files_by_name = {f.name: f for f in request.proto_file}
    to_generate = [files_by_name[name] for name in request.file_to_generate if name in files_by_name]

    try:
        generated_files = generate(to_generate, options)

    except GeneratorError as e:
        logger.error("Generation failed: %s", e)
        response.error = str(e)
        return response

    for generated in generated_files:
        response_file = response.file.add()
        response_file.name = generated.name
        response_file.content = generated.content

    return response


def main() -> int:
    """Execute the protoc plugin workflow.

    Returns:
        int: Error code.
    """
    # stdout carries the response, diagnostics go to stderr.
    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    request = plugin_pb2.CodeGeneratorRequest()
    try:
        request.ParseFromString(sys.stdin.buffer.read())

    except DecodeError as e:
        logger.error("Could not parse the code generator request: %s", e)
        return 1

    response = generate_code(request)
    sys.stdout.buffer.write(response.SerializeToString())

    return 0


if __name__ == "__main__":
    sys.exit(main())
