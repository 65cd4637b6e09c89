#!/usr/bin/env python3
"""Validate JSON config files against one schema: validate_config.py --schema S FILE..."""
import argparse
import sys
from pathlib import Path

from jsonschema import Draft202012Validator

from validate_all_configs import load_json, schema_errors


def check_file(schema: dict, path: Path) -> bool:
    """Print the result for one config file; True when it is valid."""
    try:
        data = load_json(path)
    except ValueError as e:
        print(f"[X] {path}: {e}")
        return False

    errors = schema_errors(schema, data)
    if not errors:
        print(f"[OK] {path}: OK")
        return True

    print(f"[X] {path}: {len(errors)} error(s)")
    for error in errors:
        print(f"  - {error}")
    return False


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--schema", required=True, type=Path, help="JSON schema file")
    parser.add_argument("files", nargs="+", type=Path, help="config files to check")
    args = parser.parse_args(argv)

    schema = load_json(args.schema)
    Draft202012Validator.check_schema(schema)

    results = [check_file(schema, f) for f in args.files]
    return 0 if all(results) else 1


if __name__ == "__main__":
    sys.exit(main())
