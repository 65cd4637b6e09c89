"""
IAM policy builders for the message server CDK project.

This module provides builders for creating and applying IAM policies to
identities (users or roles). It supports both managed policies and inline
policies loaded from JSON files, with validation through the centralized
error handler.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional
from aws_cdk import aws_iam as iam
from message_server_cdk.configs.config_manager import ConfigManager
from message_server_cdk.configs.error_handler import ErrorHandler
from message_server_cdk.configs.message_server_cfg import StageContext

logger = logging.getLogger(__name__)

def _ensure_list(obj: Any) -> List[Any]:
    """
    Ensure obj is a list, wrapping it if it's a single item.

    Args:
        obj: Object to ensure is a list

    Returns:
        List containing the object or the object itself if already a list
    """
    if isinstance(obj, list):
        return obj
    return [obj]

def _attach_managed(
        identity: iam.IIdentity,
        policies: List[str]
    ) -> None:
    """
    Attach managed policies to an identity.

    Args:
        identity: IAM user or role to attach policies to
        policies: List of policy names or ARNs
    """
    for policy in policies:
        if policy.startswith("arn:"):
            identity.add_managed_policy(
                iam.ManagedPolicy.from_managed_policy_arn(
                    identity,
                    f"Managed-{policy.split('/')[-1]}",
                    policy
                )
            )
        else:
            identity.add_managed_policy(
                iam.ManagedPolicy.from_aws_managed_policy_name(policy)
            )

def _attach_inline(
        identity: iam.IIdentity,
        name: str,
        statements: list[dict],
        policy_name: Optional[str] = None
    ) -> iam.Policy:
    """
    Attach inline policy to an identity.

    Args:
        identity: IAM user or role to attach policy to
        name: Logical name of the inline policy
        statements: List of IAM policy statements
        policy_name: Physical policy name; generated by CloudFormation if None

    Returns:
        The created policy
    """
    doc = iam.PolicyDocument(
        statements=[iam.PolicyStatement.from_json(s) for s in statements]
    )
    policy = iam.Policy(
        identity,
        f"Inline-{name}",
        policy_name=policy_name,
        document=doc,
    )
    identity.attach_inline_policy(policy)
    return policy

def validate_policy_config(raw: dict) -> None:
    """
    Validate policy configuration structure.

    Args:
        raw: Policy configuration dictionary

    Raises:
        ValueError: If configuration structure is invalid
        TypeError: If a section has the wrong type
    """
    ErrorHandler.validate_type(raw, dict, "policy config", "Policy")

    allowed = {"managed", "inline"}
    extra = set(raw.keys()) - allowed
    if extra:
        raise ValueError(f"Unknown keys in policy config: {', '.join(sorted(extra))}")

    if "managed" in raw:
        ErrorHandler.validate_type(
            raw["managed"],
            (list, tuple),
            "managed",
            "Policy"
        )

    inline = raw.get("inline", {})
    ErrorHandler.validate_type(inline, dict, "inline", "Policy")

    for name, stmts in inline.items():
        ErrorHandler.validate_string_not_empty(
            name,
            "inline policy name",
            "Policy"
        )
        lst = _ensure_list(stmts)
        ErrorHandler.validate_list_not_empty(
            lst,
            f"inline policy '{name}'",
            "Policy"
        )

        for i, s in enumerate(lst):
            ErrorHandler.validate_type(
                s,
                dict,
                f"statement #{i} in '{name}'",
                "Policy"
            )

            # Validate required fields for IAM statement
            ErrorHandler.validate_required_fields(
                s,
                ["Effect", "Action"],
                f"Statement #{i} in '{name}'"
            )

            # Check for Resource or NotResource
            if "Resource" not in s and "NotResource" not in s:
                raise ValueError(
                    f"Statement #{i} in '{name}' must include Resource or NotResource"
                )

def apply_policies_to_identity(
        identity: iam.IIdentity,
        filename: str,
        *,
        ctx: StageContext,
        extra_vars: Optional[Dict[str, str]] = None,
        policy_name_for: Optional[Callable[[str], str]] = None
    ) -> Dict[str, iam.Policy]:
    """
    Apply policies from a JSON file under configs/iam/policies to an identity.

    The JSON file should have this structure:
    {
      "managed": ["AmazonS3ReadOnlyAccess", "arn:aws:iam::...:policy/MyPolicy"],
      "inline": {
        "MyInlinePolicy": [
          {
            "Effect": "Allow",
            "Action": ["execute-api:Invoke"],
            "Resource": ["${ApiExecuteArn}"]
          }
        ]
      }
    }

    Args:
        identity: IAM user or role to apply policies to
        filename: Policy config filename
        ctx: Stage context for placeholder expansion
        extra_vars: Additional placeholder values (e.g. resource ARNs)
        policy_name_for: Maps an inline policy's logical name to its physical name

    Returns:
        Inline policies created, keyed by logical name

    Raises:
        ValueError: If policy configuration is invalid
        FileNotFoundError: If policy file is not found
    """
    config_mgr = ConfigManager(ctx)
    raw = config_mgr.load_config("policies", filename, extra_vars=extra_vars)

    # Validate configuration
    validate_policy_config(raw)

    # Apply managed policies
    if "managed" in raw:
        _attach_managed(identity, raw["managed"])

    # Apply inline policies
    created: Dict[str, iam.Policy] = {}
    for name, statements in raw.get("inline", {}).items():
        logger.debug("Attaching inline policy %s from %s", name, filename)
        created[name] = _attach_inline(
            identity,
            name,
            _ensure_list(statements),
            policy_name_for(name) if policy_name_for else None
        )
    return created
