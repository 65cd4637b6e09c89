"""
Static website builder for the message server CDK project.

This module provides a builder for the website bucket: S3 static website
hosting, public read access, and one deployment that uploads the prebuilt
bundle together with a generated runtime config document. The runtime config
carries the live API endpoint so the frontend does not need it at build time.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union
from aws_cdk import (
    aws_s3 as s3,
    aws_s3_deployment as s3_deployment,
    RemovalPolicy,
)
from constructs import Construct
from message_server_cdk.configs.config_manager import ConfigManager
from message_server_cdk.configs.error_handler import ErrorHandler, validate_website_config
from message_server_cdk.configs.message_server_cfg import StageContext
from message_server_cdk.configs.naming import bucket_name

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]

def asset_excludes(conf: dict) -> list[str]:
    """
    Exclude patterns for the website bundle.

    The runtime config key is always excluded so a local copy in the bundle
    can never shadow the generated document.
    """
    excludes = list(conf.get("exclude") or [])
    if conf["runtime_config_key"] not in excludes:
        excludes.append(conf["runtime_config_key"])
    return excludes

class StaticWebsite(Construct):
    """
    Static website builder using S3 for hosting.

    Creates an S3 bucket configured for static website hosting and deploys
    the website bundle plus the runtime config document into it.
    """
    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            ctx: StageContext,
            api_endpoint: str,
            asset_dir: Optional[Union[str, Path]] = None,
            config_file: str = "website.json"
        ) -> None:
        """
        Initialize the static website builder.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            ctx: Stage context for bucket naming and removal policy
            api_endpoint: Base URL of the deployed REST API
            asset_dir: Prebuilt website directory; defaults to the configured one
            config_file: Website config filename under configs/website
        """
        super().__init__(scope, construct_id)

        conf = ConfigManager(ctx).load_config("website", config_file)
        validate_website_config(conf)

        site_dir = Path(asset_dir) if asset_dir else PROJECT_ROOT / conf["asset_dir"]
        ErrorHandler.validate_path_exists(site_dir, "Website asset directory")

        name = bucket_name(conf["logical_id"], ctx)
        logger.debug("Declaring website bucket %s from %s", name, site_dir)

        # Block public access settings supersede bucket policies. Turning all of
        # them off grants nothing beyond the explicit public read policy.
        self.bucket = s3.Bucket(
            self,
            conf["logical_id"],
            bucket_name=name,
            website_index_document=conf["index_document"],
            website_error_document=conf["error_document"],
            public_read_access=True,
            block_public_access=s3.BlockPublicAccess(
                block_public_policy=False,
                block_public_acls=False,
                ignore_public_acls=False,
                restrict_public_buckets=False
            ),
            removal_policy=RemovalPolicy.RETAIN if ctx.is_production else RemovalPolicy.DESTROY,
            auto_delete_objects=not ctx.is_production,
        )

        self.runtime_config = {
            "apiEndpoint": api_endpoint,
            # TODO: add websiteUserAccessKey/websiteUserSecretKey once the API requires sigv4 auth.
        }
        self.excludes = asset_excludes(conf)

        # Deploy website content and runtime config in one deployment
        self.deployment = s3_deployment.BucketDeployment(
            self,
            "WebsiteDeployment",
            sources=[
                s3_deployment.Source.asset(str(site_dir), exclude=self.excludes),
                s3_deployment.Source.json_data(conf["runtime_config_key"], self.runtime_config),
            ],
            destination_bucket=self.bucket,
        )
