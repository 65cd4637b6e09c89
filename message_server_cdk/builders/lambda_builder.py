"""
Lambda function builders for the message server CDK project.

This module provides builders for creating AWS Lambda functions from per-folder
JSON configurations. It covers runtime selection, timeout and memory settings,
environment variables that carry table names, and DynamoDB table access grants.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, List
from aws_cdk import Duration, Tags
from aws_cdk import aws_lambda as _lambda
from constructs import Construct
from message_server_cdk.configs.config_manager import ConfigManager
from message_server_cdk.configs.error_handler import (
    ErrorHandler,
    ValidationDecorators,
    validate_lambda_config,
)
from message_server_cdk.configs.message_server_cfg import StageContext
from message_server_cdk.configs.naming import resource_name

logger = logging.getLogger(__name__)

# Folder holding one sub-folder per function
CODE_ROOT = Path(__file__).resolve().parents[1] / "lambda_src"

# Build-time files that never ship in the function package
ASSET_EXCLUDES = ["config*.json", "__pycache__", "*.pyc"]

# -----------------------------
# Lambda creators & grants
# -----------------------------

def runtime_from(s: str) -> _lambda.Runtime:
    """
    Convert string to Lambda runtime enum.

    Args:
        s: String representation of runtime

    Returns:
        Lambda runtime enum

    Raises:
        ValueError: If runtime string is not supported
    """
    s = (s or "python3.12").lower()
    m = {
        "python3.13": _lambda.Runtime.PYTHON_3_13,
        "python3.12": _lambda.Runtime.PYTHON_3_12,
        "python3.11": _lambda.Runtime.PYTHON_3_11,
        "python3.10": _lambda.Runtime.PYTHON_3_10,
    }
    ErrorHandler.validate_enum_value(s, list(m.keys()), "runtime", "Lambda")
    return m[s]

@ValidationDecorators.validate_required_config_fields(
    ["code_path", "runtime", "handler", "timeout"],
    context="Lambda"
)
def build_lambda_function(
        scope: Construct,
        logical_name: str,
        conf: dict,
        *,
        ctx: StageContext
    ) -> _lambda.Function:
    """
    Build a Lambda function from configuration.

    The code folder is packaged as a zip asset. The timeout is a hard limit:
    slow invocations fail rather than being retried here.

    Args:
        scope: CDK construct scope
        logical_name: Logical name for the function
        conf: Lambda configuration dictionary
        ctx: Stage context used for naming

    Returns:
        Lambda function instance
    """
    validate_lambda_config(conf, logical_name)
    function_name = resource_name(logical_name, ctx)

    logger.debug("Declaring function %s from %s", function_name, conf["code_path"])
    fn = _lambda.Function(
        scope,
        logical_name,
        function_name=function_name,
        runtime=runtime_from(conf["runtime"]),
        handler=conf["handler"],
        code=_lambda.Code.from_asset(conf["code_path"], exclude=ASSET_EXCLUDES),
        memory_size=int(conf["memory"]) if "memory" in conf else None,
        timeout=Duration.seconds(int(conf["timeout"])),
        environment={k: str(v) for k, v in (conf.get("env") or {}).items()},
        description=conf.get("description"),
    )

    # Add tags if configured
    for k, v in (conf.get("tags") or {}).items():
        Tags.of(fn).add(k, v)

    return fn

def add_table_environment(
        fn: _lambda.Function,
        table_env: Dict[str, str],
        tables: Dict[str, Any]
    ) -> None:
    """
    Expose table names to a function through environment variables.

    Args:
        fn: Lambda function to configure
        table_env: Mapping of environment variable name to table logical name
        tables: Dictionary of DynamoDB tables

    Raises:
        KeyError: If a table is not found in tables dictionary
    """
    for var, tname in (table_env or {}).items():
        ErrorHandler.validate_key_exists(tname, tables, "table", f"Environment of {fn.node.id}")
        fn.add_environment(var, tables[tname].table_name)

def grant_table_access(
        fn: _lambda.Function,
        grants: List[dict],
        tables: Dict[str, Any]
    ) -> None:
    """
    Grant DynamoDB table access to Lambda function.

    Args:
        fn: Lambda function to grant access to
        grants: List of grant configuration dictionaries
        tables: Dictionary of DynamoDB tables

    Raises:
        ValueError: If grant configuration is invalid
        KeyError: If table is not found in tables dictionary
    """
    for g in grants or []:
        ErrorHandler.validate_required_fields(
            g,
            ["table", "access"],
            "DynamoDB grant"
        )

        tname = g["table"]
        access = g["access"].lower()
        ErrorHandler.validate_key_exists(tname, tables, "table", "DynamoDB grant")
        table = tables[tname]

        ErrorHandler.validate_enum_value(
            access,
            ["read", "write", "readwrite"],
            "access",
            "DynamoDB grant"
        )

        if access == "read":
            table.grant_read_data(fn)
        elif access == "write":
            table.grant_write_data(fn)
        elif access == "readwrite":
            table.grant_read_write_data(fn)

# -----------------------------
# Fleet construct (per-folder configs)
# -----------------------------

class LambdaFleet(Construct):
    """
    Discovers lambda folders under `code_root` and builds each function using
    the config*.json files inside each folder. Example:

      lambda_src/server/entrypoint.py
      lambda_src/server/config.json
      lambda_src/server/config.prod.json

    Merge order is lexicographic; later files override earlier ones.
    """
    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            ctx: StageContext,
            tables: Dict[str, Any],
            code_root: str | Path = CODE_ROOT
        ) -> None:
        """
        Initialize the Lambda fleet construct.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            ctx: Stage context
            tables: Dictionary of DynamoDB tables for environment and grants
            code_root: Root directory for Lambda source code
        """
        super().__init__(scope, construct_id)

        self.config_mgr = ConfigManager(ctx)
        self.functions: Dict[str, _lambda.Function] = {}

        # Discover and build Lambda functions
        for folder in self.config_mgr.find_lambda_dirs(code_root):
            conf = self.config_mgr.load_lambda_config_from_folder(folder)
            logical_name = conf["name"]

            fn = build_lambda_function(
                self,
                logical_name,
                conf,
                ctx=ctx
            )

            add_table_environment(fn, conf.get("table_env", {}), tables)
            grant_table_access(
                fn,
                conf.get("dynamodb_access", []),
                tables
            )

            self.functions[logical_name] = fn
