from __future__ import annotations
import json, re
from pathlib import Path
from typing import Any, Mapping, Dict, List, Optional
from message_server_cdk.configs.message_server_cfg import StageContext
from message_server_cdk.configs.error_handler import ErrorHandler, validate_lambda_root

_VAR = re.compile(r"\$\{([A-Za-z0-9_]+)\}")

def expand_placeholders(obj: Any, vars: Mapping[str, str]) -> Any:
    """
    Recursively expand ${VAR} placeholders in strings, lists, and dicts.

    Unknown placeholders are left untouched. A new structure is returned;
    the input is never modified.

    Args:
        obj: Object to expand placeholders in
        vars: Variables to substitute

    Returns:
        Object with placeholders expanded
    """
    if isinstance(obj, str):
        return _VAR.sub(lambda m: str(vars.get(m.group(1), m.group(0))), obj)
    if isinstance(obj, list):
        return [expand_placeholders(x, vars) for x in obj]
    if isinstance(obj, dict):
        return {k: expand_placeholders(v, vars) for k, v in obj.items()}
    return obj

def find_placeholders(obj: Any) -> List[str]:
    """
    Collect the names of all ${VAR} placeholders left in a structure.

    Args:
        obj: Object to scan

    Returns:
        Sorted list of distinct placeholder names
    """
    found: set[str] = set()

    def _walk(o: Any) -> None:
        if isinstance(o, str):
            found.update(_VAR.findall(o))
        elif isinstance(o, list):
            for x in o:
                _walk(x)
        elif isinstance(o, dict):
            for v in o.values():
                _walk(v)

    _walk(obj)
    return sorted(found)

class ConfigManager:
    """
    Centralized configuration management for the message server CDK project.

    Handles:
    - Path resolution for different config types (policies, tables, website)
    - JSON file loading with placeholder expansion
    - Lambda folder discovery and per-folder config merging
    """

    # Root config directory
    CONFIG_ROOT = Path(__file__).resolve().parent

    # Config type mappings to subdirectories
    CONFIG_PATHS = {
        "policies": "iam/policies",
        "tables": "tables",
        "website": "website",
    }

    LAMBDA_DEFAULTS = {
        "runtime": "python3.12",
        "timeout": 5,
        "handler": "entrypoint.handler",
    }

    def __init__(self, ctx: StageContext):
        self.ctx = ctx
        self.vars = ctx.vars()

    def get_config_path(self, config_type: str, filename: str = None) -> str:
        """
        Get the full path to a config file.

        Args:
            config_type: Type of config (policies, tables, website)
            filename: Optional filename, if None returns the directory path

        Returns:
            Full path to the config file or directory
        """
        if config_type not in self.CONFIG_PATHS:
            raise ValueError(f"Unknown config type: {config_type}")

        base_path = self.CONFIG_ROOT / self.CONFIG_PATHS[config_type]

        if filename:
            return str(base_path / filename)
        return str(base_path)

    def expand_placeholders(self, obj: Any, vars: Mapping[str, str] = None) -> Any:
        """
        Expand ${VAR} placeholders using the stage variables when none are given.
        """
        return expand_placeholders(obj, self.vars if vars is None else vars)

    def load_json(
            self,
            filepath: str,
            expand_vars: bool = True,
            extra_vars: Optional[Dict[str, str]] = None
        ) -> dict:
        """
        Load and parse a JSON file, optionally expanding placeholders.

        Args:
            filepath: Path to the JSON file
            expand_vars: Whether to expand placeholders in the loaded JSON
            extra_vars: Additional variables for placeholder expansion

        Returns:
            Parsed JSON as dict

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file is not valid JSON
        """
        ErrorHandler.validate_file_exists(filepath, "Config file")

        with open(filepath, "r", encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {filepath}: {e}") from e

        if expand_vars:
            vars_to_use = {**self.vars, **(extra_vars or {})}
            data = self.expand_placeholders(data, vars_to_use)

        return data

    def load_config(
            self,
            config_type: str,
            filename: str,
            expand_vars: bool = True,
            extra_vars: Optional[Dict[str, str]] = None
        ) -> dict:
        """
        Load a config file by type and filename.

        Args:
            config_type: Type of config (policies, tables, website)
            filename: Name of the config file
            expand_vars: Whether to expand placeholders
            extra_vars: Additional variables for placeholder expansion

        Returns:
            Parsed JSON config
        """
        filepath = self.get_config_path(config_type, filename)
        return self.load_json(filepath, expand_vars, extra_vars)

    def find_lambda_dirs(self, code_root: str | Path) -> List[Path]:
        """
        Find all lambda directories that contain a config*.json file.

        Args:
            code_root: Root directory to search in

        Returns:
            List of Path objects for lambda directories
        """
        validate_lambda_root(code_root)
        root = Path(code_root)

        lambda_dirs = []
        for d in sorted(p for p in root.iterdir() if p.is_dir()):
            if any(d.glob("config*.json")):
                lambda_dirs.append(d)

        return lambda_dirs

    def load_lambda_config_from_folder(self, folder: Path, extra_vars: Dict[str, str] = None) -> dict:
        """
        Load and merge all config*.json files from a lambda folder.

        Args:
            folder: Lambda folder path
            extra_vars: Additional variables for placeholder expansion

        Returns:
            Merged lambda configuration
        """
        # Gather config JSONs
        config_files = sorted(folder.glob("config*.json"))
        conf: dict = {}

        # Merge in lexicographic order (later files override earlier ones)
        for cf in config_files:
            data = self.load_json(str(cf), expand_vars=False)  # Don't expand yet
            conf.update(data)

        # Apply defaults
        conf.setdefault("name", folder.name)
        for key, value in self.LAMBDA_DEFAULTS.items():
            conf.setdefault(key, value)

        # Add code path
        conf["code_path"] = str(folder.resolve())

        vars_to_use = self.vars.copy()
        if extra_vars:
            vars_to_use.update(extra_vars)

        return self.expand_placeholders(conf, vars_to_use)
