"""
DynamoDB table builders for the message server CDK project.

This module provides builders for creating DynamoDB tables from JSON configurations.
Table names are derived from the logical id and the stage context; encryption at
rest is left at the service default (AWS owned key).
"""

from __future__ import annotations
import logging
from typing import Dict, List, Optional
from aws_cdk import (
    RemovalPolicy,
    Tags
)
from aws_cdk import aws_dynamodb as dynamodb
from constructs import Construct
from message_server_cdk.configs.config_manager import ConfigManager
from message_server_cdk.configs.error_handler import (
    ErrorHandler,
    ValidationDecorators,
    validate_table_config,
)
from message_server_cdk.configs.message_server_cfg import StageContext
from message_server_cdk.configs.naming import resource_name

logger = logging.getLogger(__name__)

# -----------------------------
# Type mappers
# -----------------------------

def to_attr_type(s: str) -> dynamodb.AttributeType:
    """
    Convert string to DynamoDB attribute type.

    Args:
        s: String representation of attribute type

    Returns:
        DynamoDB attribute type enum

    Raises:
        ValueError: If string is not a valid attribute type
    """
    s = (s or "").upper()
    m = {
        "STRING": dynamodb.AttributeType.STRING,
        "NUMBER": dynamodb.AttributeType.NUMBER,
        "BINARY": dynamodb.AttributeType.BINARY,
    }
    ErrorHandler.validate_enum_value(s, list(m.keys()), "type", "DynamoDB attribute")
    return m[s]

def to_billing_mode(s: Optional[str]) -> Optional[dynamodb.BillingMode]:
    """
    Convert string to DynamoDB billing mode.

    Returns:
        Billing mode enum, or None to keep the CloudFormation default
    """
    if not s:
        return None
    return {
        "PAY_PER_REQUEST": dynamodb.BillingMode.PAY_PER_REQUEST,
        "PROVISIONED": dynamodb.BillingMode.PROVISIONED,
    }[s.upper()]

# -----------------------------
# Single table builder
# -----------------------------

@ValidationDecorators.validate_required_config_fields(
    ["logical_id", "partition_key"],
    context="Table"
)
def build_table(
        scope: Construct,
        name: str,
        conf: dict,
        *,
        ctx: StageContext
    ) -> dynamodb.Table:
    """
    Build a DynamoDB table from configuration.

    Args:
        scope: CDK construct scope
        name: Logical name for the table
        conf: Table configuration dictionary
        ctx: Stage context used for naming and removal policy

    Returns:
        DynamoDB table instance

    Raises:
        ValueError: If configuration is invalid
    """
    validate_table_config(conf, name)

    billing = to_billing_mode(conf.get("billing_mode"))
    provisioned = billing == dynamodb.BillingMode.PROVISIONED
    table_name = resource_name(name, ctx)

    logger.debug("Declaring table %s", table_name)
    table = dynamodb.Table(
        scope,
        name,
        table_name=table_name,
        partition_key=dynamodb.Attribute(
            name=conf["partition_key"]["name"],
            type=to_attr_type(conf["partition_key"]["type"])
        ),
        billing_mode=billing,
        read_capacity=conf.get("rcu") if provisioned else None,
        write_capacity=conf.get("wcu") if provisioned else None,
        point_in_time_recovery=conf.get("pitr"),
        removal_policy=RemovalPolicy.RETAIN if ctx.is_production else RemovalPolicy.DESTROY,
    )

    # Add tags if configured
    for k, v in (conf.get("tags") or {}).items():
        Tags.of(table).add(k, v)

    return table

# -----------------------------
# Multi-table builder (file-per-table)
# -----------------------------

class DynamoTables(Construct):
    """
    Build DynamoDB tables from JSON files under configs/tables.

    Usage:
      DynamoTables(..., ctx=ctx, config_files=["message_table.json"])

      Each table JSON must have:
      {
        "logical_id": "MessageTable",
        "partition_key": {"name": "id", "type": "STRING"},

        # Optional fields:
        "billing_mode": "PAY_PER_REQUEST",
        "pitr": true,
        "tags": {"service": "message-server"}
      }
    """
    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            ctx: StageContext,
            config_files: Optional[List[str]] = None,
        ) -> None:
        """
        Initialize the DynamoDB tables construct.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            ctx: Stage context
            config_files: List of configuration file names

        Raises:
            ValueError: If no config files provided or no configurations found
        """
        super().__init__(scope, construct_id)

        self.config_mgr = ConfigManager(ctx)

        ErrorHandler.validate_config_files_provided(config_files, "DynamoTables")

        table_configs = [
            (filename, self.config_mgr.load_config("tables", filename))
            for filename in config_files
        ]
        ErrorHandler.validate_configs_found(table_configs, "table")

        # Build tables
        self.tables: Dict[str, dynamodb.Table] = {}
        for filename, conf in table_configs:
            ErrorHandler.validate_required_fields(conf, ["logical_id"], f"Table configuration in {filename}")
            logical_name = conf["logical_id"]
            self.tables[logical_name] = build_table(
                self,
                logical_name,
                conf,
                ctx=ctx
            )
