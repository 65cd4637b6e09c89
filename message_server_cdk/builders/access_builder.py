"""
Website caller access for the message server CDK project.

Creates the IAM user that represents the website's callers and scopes it to
invoking the REST API. No access keys are issued here.
"""

from __future__ import annotations
from aws_cdk import aws_iam as iam
from constructs import Construct
from message_server_cdk.builders.policy_builder import apply_policies_to_identity
from message_server_cdk.configs.message_server_cfg import StageContext
from message_server_cdk.configs.naming import resource_name

class ApiAccessUser(Construct):
    """
    IAM user allowed to call every route of one API.

    The policy file grants execute-api:Invoke on ${ApiExecuteArn}; read and
    write routes are not distinguished.
    """
    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            ctx: StageContext,
            execute_arn: str,
            user_id: str = "WebsiteUser",
            policy_file: str = "website_user.json"
        ) -> None:
        """
        Initialize the API access user.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            ctx: Stage context
            execute_arn: Execute-API ARN the user may invoke
            user_id: Construct ID of the IAM user
            policy_file: Policy config filename under configs/iam/policies
        """
        super().__init__(scope, construct_id)

        self.user = iam.User(self, user_id)
        self.policies = apply_policies_to_identity(
            self.user,
            policy_file,
            ctx=ctx,
            extra_vars={"ApiExecuteArn": execute_arn},
            policy_name_for=lambda name: resource_name(name, ctx),
        )
