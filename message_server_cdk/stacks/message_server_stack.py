"""
Message server stack.

Declares the message table, the server Lambda, the REST API, the website
caller user and the website bucket for one stage.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

from aws_cdk import (
    Stack, CfnOutput
)
from constructs import Construct

from message_server_cdk.builders.access_builder import ApiAccessUser
from message_server_cdk.builders.dynamodb_builder import DynamoTables
from message_server_cdk.builders.lambda_builder import LambdaFleet
from message_server_cdk.builders.rest_api_builder import LambdaBackedRestApi
from message_server_cdk.builders.static_site_builder import StaticWebsite
from message_server_cdk.configs.message_server_cfg import StageContext

logger = logging.getLogger(__name__)

TABLE_ID = "MessageTable"
SERVER_LAMBDA_ID = "ServerLambda"

class MessageServerStack(Stack):
    """
    Serverless message board backend and website for one stage.

    What this stack does:
      1) Builds the message table from configs/tables/message_table.json.
      2) Builds the server Lambda from lambda_src/server (table name in env,
         read/write grant on the table).
      3) Imports the REST API from the OpenAPI template with the server Lambda
         as the integration backend, and lets API Gateway invoke it.
      4) Creates the website user allowed to invoke the API.
      5) Creates the website bucket and deploys the bundle plus config.json
         holding the API endpoint.

    Each step needs a name, ARN or URL from the one before it; CloudFormation
    derives the apply order from those references.
    """

    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            ctx: StageContext,
            website_dir: Optional[Union[str, Path]] = None,
            **kwargs
        ) -> None:
        super().__init__(scope, construct_id, **kwargs)
        logger.info("Declaring %s for stage %s", construct_id, ctx.stage_name)

        # 1) Table
        self.tables = DynamoTables(
            self, "Dynamo",
            ctx=ctx,
            config_files=["message_table.json"],
        ).tables
        message_table = self.tables[TABLE_ID]

        # 2) Function
        self.functions = LambdaFleet(
            self, "Lambdas",
            ctx=ctx,
            tables=self.tables,
        ).functions
        server_lambda = self.functions[SERVER_LAMBDA_ID]

        # 3) REST API
        self.api = LambdaBackedRestApi(
            self, "Api",
            ctx=ctx,
            handler=server_lambda,
            backend_logical_id=SERVER_LAMBDA_ID,
        )

        # 4) Website caller
        self.website_user = ApiAccessUser(
            self, "WebsiteAccess",
            ctx=ctx,
            execute_arn=self.api.execute_arn,
        )

        # 5) Website
        self.website = StaticWebsite(
            self, "Website",
            ctx=ctx,
            api_endpoint=self.api.url,
            asset_dir=website_dir,
        )

        # Outputs
        CfnOutput(self, "ApiEndpoint", value=self.api.url)
        CfnOutput(self, "MessageTableName", value=message_table.table_name)
        CfnOutput(self, "WebsiteURL", value=self.website.bucket.bucket_website_url)
        CfnOutput(self, "WebsiteUserName", value=self.website_user.user.user_name)
