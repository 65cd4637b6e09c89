#!/usr/bin/env python3
"""
JSON schema validation for all message server configuration files.

This script validates every JSON configuration file, and the OpenAPI
template, against its schema. It's designed to be used as a pre-commit hook
so broken configs are caught before `cdk synth`.
"""

import json
import sys
from pathlib import Path

from jsonschema import Draft202012Validator

# Schema to config file mappings
SCHEMA_MAPPINGS = {
    "schema/table.schema.json": ["message_server_cdk/configs/tables/message_table.json"],
    "schema/lambda.schema.json": ["message_server_cdk/lambda_src/server/config.json"],
    "schema/website.schema.json": ["message_server_cdk/configs/website/website.json"],
    "schema/policy.schema.json": ["message_server_cdk/configs/iam/policies/website_user.json"],
    "schema/api_definition.schema.json": ["message_server_cdk/api_definition/MessageServerAPI.json"],
}


def load_json(path: Path) -> dict:
    """Load and parse a JSON file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        raise ValueError(f"Failed to load {path}: {e}") from e


def schema_errors(schema: dict, data: dict) -> list[str]:
    """Return "path: message" lines for every schema violation in data."""
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.path))
    return [f"{'/'.join(map(str, e.path)) or '(root)'}: {e.message}" for e in errors]


def validate_files_against_schema(schema_path: Path, config_files: list[Path]) -> bool:
    """Validate a list of config files against a schema."""
    try:
        schema = load_json(schema_path)
        Draft202012Validator.check_schema(schema)
    except Exception as e:
        print(f"[X] Schema {schema_path}: {e}")
        return False

    all_valid = True
    for config_file in config_files:
        if not config_file.exists():
            print(f"[X] {config_file}: File not found")
            all_valid = False
            continue

        try:
            data = load_json(config_file)
        except ValueError as e:
            print(f"[X] {config_file}: {e}")
            all_valid = False
            continue

        errors = schema_errors(schema, data)
        if errors:
            all_valid = False
            print(f"[X] {config_file}: {len(errors)} error(s)")
            for error in errors:
                print(f"  - {error}")
        else:
            print(f"[OK] {config_file}: OK")

    return all_valid


def validate_all(project_root: Path) -> bool:
    """Validate every mapped config file; True when all are valid."""
    all_valid = True
    for schema_file, config_files in SCHEMA_MAPPINGS.items():
        schema_path = project_root / schema_file
        config_paths = [project_root / f for f in config_files]

        print(f"Validating against {schema_file}:")
        if not validate_files_against_schema(schema_path, config_paths):
            all_valid = False
        print()
    return all_valid


def main():
    """Main validation function."""
    project_root = Path(__file__).resolve().parent.parent

    print("Validating JSON configuration files against schemas...")
    print()

    if validate_all(project_root):
        print("All configuration files are valid! [OK]")
        sys.exit(0)
    else:
        print("Some configuration files have validation errors! [X]")
        sys.exit(1)


if __name__ == "__main__":
    main()
