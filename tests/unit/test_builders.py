"""
Unit tests for the individual resource builders.
"""

import json

import aws_cdk as cdk
import aws_cdk.assertions as assertions
import pytest
from aws_cdk import aws_iam as iam

from message_server_cdk.builders.dynamodb_builder import build_table, to_attr_type
from message_server_cdk.builders.lambda_builder import LambdaFleet, grant_table_access, runtime_from
from message_server_cdk.builders.policy_builder import apply_policies_to_identity, validate_policy_config
from message_server_cdk.builders.static_site_builder import StaticWebsite, asset_excludes
from message_server_cdk.configs.config_manager import ConfigManager
from message_server_cdk.configs.message_server_cfg import StageContext


@pytest.fixture
def ctx():
    return StageContext(app_name="demo", stage_name="dev")


@pytest.fixture
def stack():
    return cdk.Stack(cdk.App(), "BuilderTestStack")


# -----------------------------
# DynamoDB
# -----------------------------

def test_build_table_with_provisioned_capacity(stack, ctx):
    build_table(stack, "AuditTable", {
        "logical_id": "AuditTable",
        "partition_key": {"name": "pk", "type": "NUMBER"},
        "billing_mode": "PROVISIONED",
        "rcu": 2,
        "wcu": 3,
    }, ctx=ctx)

    assertions.Template.from_stack(stack).has_resource_properties("AWS::DynamoDB::Table", {
        "TableName": "demo-AuditTable-dev",
        "AttributeDefinitions": [{"AttributeName": "pk", "AttributeType": "N"}],
        "ProvisionedThroughput": {"ReadCapacityUnits": 2, "WriteCapacityUnits": 3},
    })


def test_build_table_requires_partition_key(stack, ctx):
    with pytest.raises(ValueError, match="partition_key"):
        build_table(stack, "AuditTable", {"logical_id": "AuditTable"}, ctx=ctx)


def test_attribute_type_rejects_unknown():
    with pytest.raises(ValueError, match="must be one of"):
        to_attr_type("TEXT")


# -----------------------------
# Lambda
# -----------------------------

def test_runtime_rejects_unsupported():
    with pytest.raises(ValueError, match="runtime"):
        runtime_from("nodejs20.x")


def test_grant_rejects_unknown_table(stack, ctx):
    with pytest.raises(KeyError, match="OtherTable"):
        grant_table_access(None, [{"table": "OtherTable", "access": "read"}], {})


def test_grant_rejects_unknown_access(stack, ctx):
    table = build_table(stack, "MessageTable", {
        "logical_id": "MessageTable",
        "partition_key": {"name": "id", "type": "STRING"},
    }, ctx=ctx)

    with pytest.raises(ValueError, match="access"):
        grant_table_access(None, [{"table": "MessageTable", "access": "admin"}], {"MessageTable": table})


def _write_lambda(root, name, conf):
    folder = root / name
    folder.mkdir(parents=True)
    (folder / "entrypoint.py").write_text("def handler(event, context):\n    return event\n", encoding="utf-8")
    (folder / "config.json").write_text(json.dumps(conf), encoding="utf-8")
    return folder


def test_lambda_fleet_builds_from_folder_config(tmp_path, stack, ctx):
    _write_lambda(tmp_path, "echo", {
        "name": "EchoLambda",
        "memory": 256,
        "env": {"STAGE": "${StageName}"},
        "tags": {"service": "echo"},
    })

    fleet = LambdaFleet(stack, "Lambdas", ctx=ctx, tables={}, code_root=tmp_path)

    assert list(fleet.functions) == ["EchoLambda"]
    assertions.Template.from_stack(stack).has_resource_properties("AWS::Lambda::Function", {
        "FunctionName": "demo-EchoLambda-dev",
        "MemorySize": 256,
        "Timeout": 5,
        "Handler": "entrypoint.handler",
        "Environment": {"Variables": {"STAGE": "dev"}},
        "Tags": assertions.Match.array_with([{"Key": "service", "Value": "echo"}]),
    })


def test_lambda_memory_is_left_to_default_when_unset(tmp_path, stack, ctx):
    _write_lambda(tmp_path, "echo", {"name": "EchoLambda"})

    LambdaFleet(stack, "Lambdas", ctx=ctx, tables={}, code_root=tmp_path)

    assertions.Template.from_stack(stack).has_resource_properties("AWS::Lambda::Function", {
        "FunctionName": "demo-EchoLambda-dev",
        "MemorySize": assertions.Match.absent(),
        "Tags": assertions.Match.absent(),
    })


def test_lambda_fleet_rejects_bad_memory(tmp_path, stack, ctx):
    _write_lambda(tmp_path, "echo", {"name": "EchoLambda", "memory": -1})

    with pytest.raises(ValueError, match="memory"):
        LambdaFleet(stack, "Lambdas", ctx=ctx, tables={}, code_root=tmp_path)


def test_lambda_fleet_rejects_unknown_table_env(tmp_path, stack, ctx):
    _write_lambda(tmp_path, "echo", {"name": "EchoLambda", "table_env": {"TABLE": "MissingTable"}})

    with pytest.raises(KeyError, match="MissingTable"):
        LambdaFleet(stack, "Lambdas", ctx=ctx, tables={}, code_root=tmp_path)


def test_lambda_fleet_rejects_bad_timeout(tmp_path, stack, ctx):
    _write_lambda(tmp_path, "echo", {"name": "EchoLambda", "timeout": 0})

    with pytest.raises(ValueError, match="timeout"):
        LambdaFleet(stack, "Lambdas", ctx=ctx, tables={}, code_root=tmp_path)


def test_lambda_fleet_requires_code_root(tmp_path, stack, ctx):
    with pytest.raises(FileNotFoundError):
        LambdaFleet(stack, "Lambdas", ctx=ctx, tables={}, code_root=tmp_path / "missing")


# -----------------------------
# IAM policies
# -----------------------------

@pytest.mark.parametrize("raw, error", [
    ({"inline": {}, "extra": []}, ValueError),
    ({"inline": []}, TypeError),
    ({"managed": "ReadOnlyAccess"}, TypeError),
    ({"inline": {"P": []}}, ValueError),
    ({"inline": {"P": [{"Effect": "Allow", "Resource": "*"}]}}, ValueError),
    ({"inline": {"P": [{"Effect": "Allow", "Action": "s3:GetObject"}]}}, ValueError),
])
def test_policy_config_validation(raw, error):
    with pytest.raises(error):
        validate_policy_config(raw)


def test_policy_config_accepts_not_resource():
    validate_policy_config({
        "inline": {"P": {"Effect": "Deny", "Action": "s3:*", "NotResource": "arn:aws:s3:::keep"}},
    })


def test_apply_policies_from_file(tmp_path, monkeypatch, stack, ctx):
    policies_dir = tmp_path / "iam" / "policies"
    policies_dir.mkdir(parents=True)
    (policies_dir / "ops.json").write_text(json.dumps({
        "managed": ["ReadOnlyAccess"],
        "inline": {
            "BucketRead": [{
                "Effect": "Allow",
                "Action": ["s3:GetObject"],
                "Resource": ["arn:aws:s3:::${AppName}-${StageName}-${Suffix}/*"],
            }],
        },
    }), encoding="utf-8")
    monkeypatch.setattr(ConfigManager, "CONFIG_ROOT", tmp_path)

    user = iam.User(stack, "OpsUser")
    created = apply_policies_to_identity(user, "ops.json", ctx=ctx, extra_vars={"Suffix": "logs"})

    assert list(created) == ["BucketRead"]
    template = assertions.Template.from_stack(stack)
    template.has_resource_properties("AWS::IAM::Policy", {
        "PolicyDocument": {
            "Statement": [{
                "Effect": "Allow",
                "Action": "s3:GetObject",
                "Resource": "arn:aws:s3:::demo-dev-logs/*",
            }],
        },
    })
    user_props = next(iter(template.find_resources("AWS::IAM::User").values()))["Properties"]
    assert "ReadOnlyAccess" in json.dumps(user_props["ManagedPolicyArns"])


def test_apply_policies_missing_file(stack, ctx):
    with pytest.raises(FileNotFoundError):
        apply_policies_to_identity(iam.User(stack, "OpsUser"), "missing.json", ctx=ctx)


# -----------------------------
# Static website
# -----------------------------

def test_asset_excludes_always_drop_runtime_config():
    assert asset_excludes({"exclude": ["*.map"], "runtime_config_key": "config.json"}) == ["*.map", "config.json"]
    assert asset_excludes({"exclude": ["config.json"], "runtime_config_key": "config.json"}) == ["config.json"]
    assert asset_excludes({"runtime_config_key": "settings.json"}) == ["settings.json"]


def test_website_requires_asset_dir(tmp_path, stack, ctx):
    with pytest.raises(FileNotFoundError, match="Website asset directory"):
        StaticWebsite(
            stack, "Website",
            ctx=ctx,
            api_endpoint="https://example.invalid/dev/",
            asset_dir=tmp_path / "missing",
        )
