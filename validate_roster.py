#!/usr/bin/env python3
"""Validate roster YAML files against the schema."""
import argparse
import sys
from pathlib import Path

import yaml
from jsonschema import validate, ValidationError

from roster.loader import load_schema


def validate_roster_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single roster YAML file. Returns list of errors."""
    errors = []
    try:
        with open(filepath) as f:
            data = yaml.safe_load(f)
        validate(instance=data, schema=schema)
    except yaml.YAMLError as e:
        errors.append(f"YAML parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate every roster YAML file in a directory (or the files given)."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        default=[Path.cwd() / "data"],
        help="Roster files or directories (default: ./data)",
    )
    args = parser.parse_args(argv)
    schema = load_schema()

    yaml_files = []
    for path in args.paths:
        if path.is_dir():
            yaml_files += list(path.glob("*.yaml")) + list(path.glob("*.yml"))
        elif path.exists():
            yaml_files.append(path)
        else:
            print(f"Error: not found: {path}")
            return 1

    if not yaml_files:
        print("Warning: No YAML files found")
        return 0

    all_valid = True
    for filepath in sorted(yaml_files):
        errors = validate_roster_file(filepath, schema)
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
