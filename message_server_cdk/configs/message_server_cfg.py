"""
Deployment configuration for the message server CDK project.

This module holds the stage context that every builder receives explicitly.
It loads the application name, stage name and per-stage account/region from
cdk.json context (with -c overrides) and validates the result before any
resource is declared.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union
from aws_cdk import App, Aws, Environment, Stack
from functools import lru_cache
from message_server_cdk.configs.error_handler import ErrorHandler

CONTEXT_KEY = "messageServer"
PRODUCTION_STAGE = "prod"

@dataclass(frozen=True)
class StageContext:
    """
    Immutable description of one deployment of the application.

    Attributes:
        app_name: Application name, prefix of every resource name
        stage_name: Deployment stage (e.g. dev, prod)
        account_id: Optional AWS account ID; pseudo parameter when unset
        region: Optional AWS region; pseudo parameter when unset
        partition: Optional ARN partition; pseudo parameter when unset
    """
    app_name: str
    stage_name: str
    account_id: Optional[str] = None
    region: Optional[str] = None
    partition: Optional[str] = None

    def __post_init__(self) -> None:
        ErrorHandler.validate_string_not_empty(self.app_name, "app_name", "Stage context")
        ErrorHandler.validate_string_not_empty(self.stage_name, "stage_name", "Stage context")

    @property
    def is_production(self) -> bool:
        return self.stage_name.lower() == PRODUCTION_STAGE

    @property
    def resolved_account(self) -> str:
        """
        Get the account used in ARNs.

        Returns:
            Configured account ID or the AWS::AccountId pseudo parameter
        """
        return self.account_id or Aws.ACCOUNT_ID

    @property
    def resolved_region(self) -> str:
        """
        Get the region used in ARNs.

        Returns:
            Configured region or the AWS::Region pseudo parameter
        """
        return self.region or Aws.REGION

    @property
    def resolved_partition(self) -> str:
        """
        Get the partition used in ARNs.

        Returns:
            Configured partition or the AWS::Partition pseudo parameter
        """
        return self.partition or Aws.PARTITION

    @property
    def environment(self) -> Optional[Environment]:
        """
        Get the CDK environment for stacks of this stage.

        Returns:
            Environment when account or region are configured, None for an
            environment-agnostic stack
        """
        if not self.account_id and not self.region:
            return None
        return Environment(account=self.account_id, region=self.region)

    def vars(
            self,
            extra: dict[str, str] | None = None
        ) -> dict[str, str]:
        """
        Generate placeholder variables for JSON configuration expansion.

        Args:
            extra: Additional variables to include

        Returns:
            Dictionary of variable name to value mappings
        """
        base = {
            "AppName": self.app_name,
            "StageName": self.stage_name,
            "AccountId": self.resolved_account,
            "Region": self.resolved_region,
            "Partition": self.resolved_partition,
        }
        if extra:
            base.update({k: str(v) for k, v in extra.items()})

        return base

@dataclass(frozen=True)
class MessageServerCfg:
    """
    Main project configuration container.

    Attributes:
        stage: Stage context for this deployment
        log_level: Logging level name for synthesis
    """
    stage: StageContext
    log_level: str = "INFO"

def _node(obj: Union[App, Stack]):
    """
    Get the CDK node from an App or Stack.

    Args:
        obj: CDK App or Stack instance

    Returns:
        CDK node instance
    """
    return (obj if isinstance(obj, App) else Stack.of(obj)).node

@lru_cache(maxsize=1)
def get_cfg(obj: Union[App, Stack]) -> MessageServerCfg:
    """
    Load project configuration from cdk.json context.

    Reads the "messageServer" block, applies overrides
    (-c messageServer.stage=prod, -c messageServer.app_name=...), and validates.

    Args:
        obj: CDK App or Stack instance

    Returns:
        Validated project configuration

    Raises:
        ValueError: If required context keys are missing
    """
    node = _node(obj)
    ctx = node.try_get_context(CONTEXT_KEY) or {}
    app_name = node.try_get_context(f"{CONTEXT_KEY}.app_name") or ctx.get("app_name")
    stage_name = (node.try_get_context(f"{CONTEXT_KEY}.stage") or ctx.get("stage") or "dev").lower()
    log_level = (node.try_get_context(f"{CONTEXT_KEY}.log_level") or ctx.get("log_level") or "INFO").upper()

    stage_ctx = ctx.get(stage_name) or {}
    account_id = stage_ctx.get("account_id")
    region = stage_ctx.get("region", ctx.get("region"))
    partition = ctx.get("partition")

    # Validate required configuration
    missing = []
    if not app_name:
        missing.append(f"{CONTEXT_KEY}.app_name")

    ErrorHandler.validate_context_keys(missing, "cdk.json")
    ErrorHandler.validate_enum_value(
        log_level,
        ["DEBUG", "INFO", "WARNING", "ERROR"],
        "log_level",
        "cdk.json"
    )

    return MessageServerCfg(
        stage=StageContext(
            app_name=app_name,
            stage_name=stage_name,
            account_id=account_id,
            region=region,
            partition=partition,
        ),
        log_level=log_level,
    )
