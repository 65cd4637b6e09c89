"""
Centralized error handling for the message server CDK project.

This module provides validation helpers and decorators shared by the config
loaders and the resource builders. Every failure is raised during synthesis,
before CloudFormation receives a template, with a message naming the
configuration that is wrong.
"""

from __future__ import annotations
import re
from pathlib import Path
from typing import Any, Callable, Dict, List, Union
from functools import wraps

_BUCKET_NAME = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")

class ErrorHandler:
    """
    Centralized error handling for the message server CDK project.

    Provides utility methods for common validation scenarios.
    """

    @staticmethod
    def validate_path_exists(
            path: Union[str, Path],
            path_type: str = "Path"
        ) -> None:
        """
        Validate that a path exists and is a directory.

        Args:
            path: Path to validate
            path_type: Type description for error messages

        Raises:
            FileNotFoundError: If path does not exist or is not a directory
        """
        if not Path(path).is_dir():
            raise FileNotFoundError(f"{path_type} not found: {path}")

    @staticmethod
    def validate_file_exists(
            file_path: Union[str, Path],
            file_type: str = "File"
        ) -> None:
        """
        Validate that a file exists.

        Args:
            file_path: File path to validate
            file_type: Type description for error messages

        Raises:
            FileNotFoundError: If file does not exist
        """
        if not Path(file_path).is_file():
            raise FileNotFoundError(f"{file_type} not found: {file_path}")

    @staticmethod
    def validate_required_fields(
            data: Dict[str, Any],
            required_fields: List[str],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that all required fields are present in a dictionary.

        Args:
            data: Dictionary to validate
            required_fields: List of field names that must be present
            context: Context description for error messages

        Raises:
            ValueError: If any required fields are missing
        """
        missing_fields = [field for field in required_fields if field not in data]
        if missing_fields:
            raise ValueError(f"{context} missing required fields: {', '.join(missing_fields)}")

    @staticmethod
    def validate_field_structure(
            data: Dict[str, Any],
            field_name: str,
            required_subfields: List[str],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a field has the required subfields.

        Args:
            data: Dictionary containing the field to validate
            field_name: Name of the field to validate
            required_subfields: List of subfield names that must be present
            context: Context description for error messages

        Raises:
            ValueError: If field is missing or lacks required subfields
        """
        if field_name not in data:
            raise ValueError(f"{context} missing required field '{field_name}'")

        field_data = data[field_name]
        if not isinstance(field_data, dict):
            raise ValueError(f"{context} field '{field_name}' must be a dictionary")

        missing_subfields = [subfield for subfield in required_subfields if subfield not in field_data]
        if missing_subfields:
            raise ValueError(f"{context} field '{field_name}' missing required subfields: {', '.join(missing_subfields)}")

    @staticmethod
    def validate_enum_value(
            value: Any,
            valid_values: List[Any],
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is one of the allowed enum values.

        Args:
            value: Value to validate
            valid_values: List of allowed values
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not in the allowed list
        """
        if value not in valid_values:
            raise ValueError(f"{context} field '{field_name}' must be one of: {', '.join(map(str, valid_values))}")

    @staticmethod
    def validate_type(
            value: Any,
            expected_type: Union[type, tuple],
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is of the expected type.

        Args:
            value: Value to validate
            expected_type: Expected type class or tuple of classes
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            TypeError: If value is not of the expected type
        """
        if not isinstance(value, expected_type):
            expected = (
                " or ".join(t.__name__ for t in expected_type)
                if isinstance(expected_type, tuple)
                else expected_type.__name__
            )
            raise TypeError(f"{context} field '{field_name}' must be of type {expected}, got {type(value).__name__}")

    @staticmethod
    def validate_positive_integer(
            value: Any,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not a positive integer
        """
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{context} field '{field_name}' must be a positive integer")

    @staticmethod
    def validate_string_not_empty(
            value: Any,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is a non-empty string.

        Args:
            value: Value to validate
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not a non-empty string
        """
        if not isinstance(value, str) or value.strip() == "":
            raise ValueError(f"{context} field '{field_name}' must be a non-empty string")

    @staticmethod
    def validate_list_not_empty(
            value: Any,
            field_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a value is a non-empty list.

        Args:
            value: Value to validate
            field_name: Name of the field being validated
            context: Context description for error messages

        Raises:
            ValueError: If value is not a non-empty list
        """
        if not isinstance(value, list) or len(value) == 0:
            raise ValueError(f"{context} field '{field_name}' must be a non-empty list")

    @staticmethod
    def validate_key_exists(
            key: Any,
            container: Dict[str, Any],
            key_name: str,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that a key exists in a dictionary.

        Args:
            key: Key to look for
            container: Dictionary to search in
            key_name: Name of the key for error messages
            context: Context description for error messages

        Raises:
            KeyError: If key is not found in container
        """
        if key not in container:
            raise KeyError(f"{context} {key_name} '{key}' not found")

    @staticmethod
    def validate_bucket_name(
            name: str,
            context: str = "Bucket"
        ) -> None:
        """
        Validate an S3 bucket name: 3-63 characters of lowercase letters,
        digits, dots and hyphens, starting and ending with a letter or digit.

        Args:
            name: Bucket name to validate
            context: Context description for error messages

        Raises:
            ValueError: If the name breaks S3 naming rules
        """
        if not _BUCKET_NAME.match(name) or ".." in name:
            raise ValueError(f"{context} name '{name}' is not a valid S3 bucket name")

    @staticmethod
    def validate_config_files_provided(
            config_files: Any,
            context: str = "Configuration"
        ) -> None:
        """
        Validate that config files are provided.

        Args:
            config_files: Config files to validate
            context: Context description for error messages

        Raises:
            ValueError: If config files are not provided
        """
        if not config_files:
            raise ValueError(f"No config_files provided to {context}")

    @staticmethod
    def validate_configs_found(
            configs: List[Any],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that configurations were found.

        Args:
            configs: List of configurations to validate
            context: Context description for error messages

        Raises:
            ValueError: If no configurations were found
        """
        if not configs:
            raise ValueError(f"No {context} configurations found")

    @staticmethod
    def validate_context_keys(
            missing_keys: List[str],
            context: str = "Configuration"
        ) -> None:
        """
        Validate that required context keys are present.

        Args:
            missing_keys: List of missing key names
            context: Context description for error messages

        Raises:
            ValueError: If any required keys are missing
        """
        if missing_keys:
            raise ValueError(f"Missing required context keys in {context}: {', '.join(missing_keys)}")


class ValidationDecorators:
    """
    Decorators for common validation patterns.
    """

    @staticmethod
    def validate_required_config_fields(
            required_fields: List[str],
            config_param: str = "conf",
            context: str = "Configuration"
        ):
        """
        Decorator to validate that a configuration dictionary has all required fields.

        Args:
            required_fields: List of required field names
            config_param: Name of the config parameter to validate
            context: Context description for error messages

        Returns:
            Decorator function
        """
        def decorator(func: Callable) -> Callable:
            @wraps(func)
            def wrapper(*args, **kwargs):
                # Get the config value from function arguments
                if config_param in kwargs:
                    config_value = kwargs[config_param]
                else:
                    # Positional layout is (scope, logical_name, conf, ...)
                    if len(args) > 2:
                        config_value = args[2]
                    else:
                        raise ValueError(f"Config parameter '{config_param}' not found in function arguments")

                ErrorHandler.validate_required_fields(config_value, required_fields, context)
                return func(*args, **kwargs)
            return wrapper
        return decorator


# Convenience functions for common validation patterns
def validate_lambda_root(code_root: Union[str, Path]) -> None:
    """
    Validate that the Lambda code root directory exists.

    Args:
        code_root: Path to the Lambda code root directory

    Raises:
        FileNotFoundError: If the directory does not exist
    """
    ErrorHandler.validate_path_exists(code_root, "Lambda root")

def validate_table_config(
        conf: Dict[str, Any],
        table_name: str
    ) -> None:
    """
    Validate that a table configuration has all required fields.

    Args:
        conf: Table configuration dictionary
        table_name: Name of the table for error messages

    Raises:
        ValueError: If required fields are missing or invalid
    """
    context = f"Table configuration for {table_name}"
    ErrorHandler.validate_required_fields(conf, ["logical_id", "partition_key"], context)

    # Validate partition_key structure
    ErrorHandler.validate_field_structure(conf, "partition_key", ["name", "type"], context)

    billing = conf.get("billing_mode")
    if billing is not None:
        ErrorHandler.validate_enum_value(
            billing.upper(),
            ["PAY_PER_REQUEST", "PROVISIONED"],
            "billing_mode",
            context
        )

def validate_lambda_config(
        conf: Dict[str, Any],
        lambda_name: str
    ) -> None:
    """
    Validate that a Lambda configuration has all required fields.

    Args:
        conf: Lambda configuration dictionary
        lambda_name: Name of the lambda for error messages

    Raises:
        ValueError: If required fields are missing or invalid
    """
    context = f"Lambda configuration for {lambda_name}"
    ErrorHandler.validate_required_fields(conf, ["name", "runtime", "timeout", "handler"], context)
    ErrorHandler.validate_positive_integer(conf["timeout"], "timeout", context)
    if "memory" in conf:
        ErrorHandler.validate_positive_integer(conf["memory"], "memory", context)

def validate_website_config(
        conf: Dict[str, Any]
    ) -> None:
    """
    Validate that the website configuration has all required fields.

    Args:
        conf: Website configuration dictionary

    Raises:
        ValueError: If required fields are missing or invalid
    """
    context = "Website configuration"
    ErrorHandler.validate_required_fields(
        conf,
        ["logical_id", "index_document", "error_document", "asset_dir", "runtime_config_key"],
        context
    )
    for field in ("index_document", "error_document", "runtime_config_key"):
        ErrorHandler.validate_string_not_empty(conf[field], field, context)
    ErrorHandler.validate_type(conf.get("exclude", []), list, "exclude", context)
