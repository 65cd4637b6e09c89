"""
Resource naming and API definition rendering for the message server CDK project.

Every externally visible resource name is derived here from a logical id and
the stage context, so redeploying the same stage always produces the same
names. The OpenAPI template is rendered here as well: its backend invocation
placeholders are replaced with the Lambda invocation URI of the target stage.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Dict, Union
from message_server_cdk.configs.config_manager import (
    ConfigManager,
    expand_placeholders,
    find_placeholders,
)
from message_server_cdk.configs.error_handler import ErrorHandler
from message_server_cdk.configs.message_server_cfg import StageContext

logger = logging.getLogger(__name__)

LAMBDA_API_VERSION = "2015-03-31"

def resource_name(logical_id: str, ctx: StageContext) -> str:
    """
    Build the environment-qualified name of a resource.

    Args:
        logical_id: Logical resource id (e.g. "MessageTable")
        ctx: Stage context of the deployment

    Returns:
        Name of the form "<app>-<logical_id>-<stage>"
    """
    ErrorHandler.validate_string_not_empty(logical_id, "logical_id", "Resource name")
    return f"{ctx.app_name}-{logical_id}-{ctx.stage_name}"

def bucket_name(logical_id: str, ctx: StageContext) -> str:
    """
    Build a resource name that satisfies S3 bucket naming rules.

    Raises:
        ValueError: If the lowercased name is still not a valid bucket name
    """
    name = resource_name(logical_id, ctx).lower()
    ErrorHandler.validate_bucket_name(name, f"Bucket {logical_id}")
    return name

def invocation_placeholder(backend_logical_id: str) -> str:
    """Name of the template variable holding the backend's invocation URI."""
    return f"{backend_logical_id}InvocationUri"

def lambda_invocation_uri(function_name: str, ctx: StageContext) -> str:
    """
    Build the API Gateway integration URI for a Lambda function.

    Args:
        function_name: Physical name of the function
        ctx: Stage context (partition, region, account)

    Returns:
        arn:<partition>:apigateway:<region>:lambda:path/.../invocations
    """
    region = ctx.resolved_region
    function_arn = f"arn:{ctx.resolved_partition}:lambda:{region}:{ctx.resolved_account}:function:{function_name}"
    return (
        f"arn:{ctx.resolved_partition}:apigateway:{region}:lambda:path/"
        f"{LAMBDA_API_VERSION}/functions/{function_arn}/invocations"
    )

def substitute_invocation_uri(
        document: Dict[str, Any],
        backend_logical_id: str,
        invocation_uri: str
    ) -> Dict[str, Any]:
    """
    Return a copy of an API definition with the backend placeholder replaced.

    Args:
        document: Parsed OpenAPI document; left unchanged
        backend_logical_id: Logical id of the backend function
        invocation_uri: Value to substitute

    Returns:
        New document with every ${<backend>InvocationUri} replaced

    Raises:
        ValueError: If the document has no placeholder for the backend or
            still contains placeholders after substitution
    """
    placeholder = invocation_placeholder(backend_logical_id)
    if placeholder not in find_placeholders(document):
        raise ValueError(
            f"API definition has no '${{{placeholder}}}' integration placeholder"
        )

    rendered = expand_placeholders(document, {placeholder: invocation_uri})

    leftover = find_placeholders(rendered)
    if leftover:
        raise ValueError(f"API definition has unresolved placeholders: {', '.join(leftover)}")
    return rendered

def render_api_spec(
        template_path: Union[str, Path],
        backend_logical_id: str,
        ctx: StageContext
    ) -> Dict[str, Any]:
    """
    Load an OpenAPI template and point its integrations at a stage's function.

    The function name is derived with resource_name(backend_logical_id, ctx).
    The template on disk is only read.

    Args:
        template_path: Path to the OpenAPI JSON template
        backend_logical_id: Logical id of the backend function
        ctx: Stage context of the deployment

    Returns:
        Rendered OpenAPI document

    Raises:
        FileNotFoundError: If the template does not exist
        ValueError: If the template is not valid JSON, is not an OpenAPI
            document, or its placeholders cannot be resolved
    """
    template = ConfigManager(ctx).load_json(str(template_path), expand_vars=False)
    ErrorHandler.validate_type(template, dict, "document", f"API definition {template_path}")
    ErrorHandler.validate_required_fields(template, ["openapi", "paths"], f"API definition {template_path}")

    function_name = resource_name(backend_logical_id, ctx)
    uri = lambda_invocation_uri(function_name, ctx)
    logger.debug("Rendering %s with backend %s", template_path, function_name)
    return substitute_invocation_uri(template, backend_logical_id, uri)
