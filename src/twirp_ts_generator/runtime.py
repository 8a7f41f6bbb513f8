"""Fixed-content files that accompany the generated client modules."""

from __future__ import annotations

import json
import posixpath

from twirp_ts_generator.proto_types import TS_SUFFIX

RUNTIME_FILE_NAME = "twirp.ts"
INDEX_FILE_NAME = "index.ts"
TSCONFIG_FILE_NAME = "tsconfig.json"
PACKAGE_JSON_FILE_NAME = "package.json"

RUNTIME_LIBRARY = """export interface TwirpErrorJSON {
    code: string;
    msg: string;
    meta: {[index: string]: string};
}

export class TwirpError extends Error {
    code: string;
    meta: {[index: string]: string};

    constructor(te: TwirpErrorJSON) {
        super(te.msg);

        this.code = te.code;
        this.meta = te.meta;
    }
}

export const throwTwirpError = (resp: Response) => {
    return resp.json().then((err: TwirpErrorJSON) => { throw new TwirpError(err); })
};

export const createTwirpRequest = (url: string, body: object, optionsOverride: object = {}): Request => {
    const options = {
        ...{
            method: "POST",
            headers: {
                "Content-Type": "application/json"
            }
        },
        ...optionsOverride
    };

    return new Request(url, {...options, body: JSON.stringify(body)});
};

export type Fetch = (input: RequestInfo, init?: RequestInit) => Promise<Response>;
"""

TSCONFIG = {
    "compilerOptions": {
        "target": "es2017",
        "module": "commonjs",
        "lib": ["es2017", "dom"],
        "declaration": True,
        "strict": True,
        "outDir": "./dist",
    },
    "exclude": ["node_modules", "dist"],
}


def _dumps_json(value: dict) -> str:
    return json.dumps(value, indent=2) + "\n"


def runtime_library() -> tuple[str, str]:
    """The support library imported by every client module, as `(name, content)`."""
    return RUNTIME_FILE_NAME, RUNTIME_LIBRARY


def package_index(module_names: list[str]) -> tuple[str, str]:
    """An index module re-exporting the given TypeScript modules, in order.

    Args:
        module_names (list[str]): The names of the generated `*.ts` files.

    Returns:
        tuple[str, str]: The index file name and content.

    Raises:
        ValueError: If one of the names is not a TypeScript module.
    """
    lines = []
    for module_name in module_names:
        stem, suffix = posixpath.splitext(module_name)
        if suffix != TS_SUFFIX:
            raise ValueError(f"Cannot export '{module_name}' from the package index.")
        lines.append(f"export * from './{stem}';")

    return INDEX_FILE_NAME, "\n".join(lines) + "\n"


def tsconfig() -> tuple[str, str]:
    """The TypeScript compiler configuration of a generated package."""
    return TSCONFIG_FILE_NAME, _dumps_json(TSCONFIG)


def package_json(package_name: str) -> tuple[str, str]:
    """The npm manifest of a generated package.

    Args:
        package_name (str): The npm package name.
    """
    manifest = {
        "name": package_name,
        "version": "0.0.1",
        "main": "dist/index.js",
        "types": "dist/index.d.ts",
        "files": ["dist"],
        "scripts": {"build": "tsc"},
        "devDependencies": {"typescript": "^5.0.0"},
    }
    return PACKAGE_JSON_FILE_NAME, _dumps_json(manifest)
