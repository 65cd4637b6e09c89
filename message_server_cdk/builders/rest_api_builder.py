"""
REST API builders for the message server CDK project.

This module creates an API Gateway REST API from an OpenAPI template whose
integrations point at a Lambda backend. Routes come only from the template;
the builder renders the backend invocation URI into it, deploys one stage,
and lets API Gateway invoke the backend from this API only.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Union

from aws_cdk import aws_apigateway as apigw
from aws_cdk import aws_iam as iam
from aws_cdk import aws_lambda as _lambda
from constructs import Construct
from message_server_cdk.configs.message_server_cfg import StageContext
from message_server_cdk.configs.naming import render_api_spec, resource_name

logger = logging.getLogger(__name__)

API_DEFINITION_ROOT = Path(__file__).resolve().parents[1] / "api_definition"

# -----------------------------
# Core builders
# -----------------------------

def build_spec_rest_api(
        scope: Construct,
        logical_name: str,
        *,
        definition: dict,
        ctx: StageContext
    ) -> apigw.SpecRestApi:
    """
    Create a REST API from a rendered OpenAPI document.

    Args:
        scope: CDK construct scope
        logical_name: Logical id, also used for the API name
        definition: Rendered OpenAPI document
        ctx: Stage context; its stage name is the deployment stage

    Returns:
        apigw.SpecRestApi instance
    """
    return apigw.SpecRestApi(
        scope,
        logical_name,
        rest_api_name=resource_name(logical_name, ctx),
        api_definition=apigw.ApiDefinition.from_inline(definition),
        deploy_options=apigw.StageOptions(stage_name=ctx.stage_name),
    )


def grant_api_invoke(
        api: apigw.SpecRestApi,
        handler: _lambda.IFunction
    ) -> None:
    """
    Allow API Gateway to invoke a function on behalf of this API only.

    Args:
        api: REST API whose execute ARN is the permitted source
        handler: Lambda function to invoke
    """
    handler.add_permission(
        "ApiInvokeLambdaPermission",
        principal=iam.ServicePrincipal("apigateway.amazonaws.com"),
        action="lambda:InvokeFunction",
        source_arn=api.arn_for_execute_api(),
    )

# -----------------------------
# High-level construct
# -----------------------------

class LambdaBackedRestApi(Construct):
    """
    REST API imported from an OpenAPI template with a Lambda backend.

    Example usage in a stack:

        api = LambdaBackedRestApi(
            self, "Api",
            ctx=ctx,
            handler=lambdas["ServerLambda"],
            backend_logical_id="ServerLambda",
        )
        # api.url -> https://<id>.execute-api.<region>.amazonaws.com/<stage>/
    """
    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            ctx: StageContext,
            handler: _lambda.IFunction,
            backend_logical_id: str,
            api_id: str = "MessageServerAPI",
            template_path: Union[str, Path] = API_DEFINITION_ROOT / "MessageServerAPI.json"
        ) -> None:
        """
        Initialize the REST API construct.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            ctx: Stage context
            handler: Backend Lambda function
            backend_logical_id: Logical id the function was named from
            api_id: Logical id of the API
            template_path: OpenAPI template with ${<backend>InvocationUri} placeholders
        """
        super().__init__(scope, construct_id)

        definition = render_api_spec(template_path, backend_logical_id, ctx)
        self.definition = definition

        logger.debug("Declaring REST API %s on stage %s", api_id, ctx.stage_name)
        self.api = build_spec_rest_api(
            self,
            api_id,
            definition=definition,
            ctx=ctx
        )
        # Integrations refer to the function by name only. Depend on the
        # function resource itself, not its subtree, which holds the permission.
        self.api.node.add_dependency(handler.node.default_child)

        grant_api_invoke(self.api, handler)

        self.url = self.api.url_for_path()
        self.execute_arn = self.api.arn_for_execute_api()
