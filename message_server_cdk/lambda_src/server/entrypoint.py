import json
import logging
import os
import uuid

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger()
logger.setLevel(logging.INFO)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Credentials": "true",
    "Content-Type": "application/json",
}

_table = None


def _message_table():
    global _table
    if _table is None:
        _table = boto3.resource("dynamodb").Table(os.environ["MESSAGE_TABLE_NAME"])
    return _table


def _response(status, body):
    return {"statusCode": status, "headers": CORS_HEADERS, "body": json.dumps(body)}


def _count_messages(table):
    count = 0
    kwargs = {"Select": "COUNT"}
    while True:
        page = table.scan(**kwargs)
        count += page.get("Count", 0)
        if "LastEvaluatedKey" not in page:
            return count
        kwargs["ExclusiveStartKey"] = page["LastEvaluatedKey"]


def handler(event, context):
    method = event.get("httpMethod")
    resource = event.get("resource")
    table = _message_table()

    try:
        if resource == "/messages" and method == "GET":
            return _response(200, {"message_count": _count_messages(table)})

        if resource == "/messages" and method == "POST":
            message = event.get("body")
            if not message:
                return _response(400, {"message": "Request body must be a non-empty string"})
            message_id = str(uuid.uuid4())
            table.put_item(Item={"id": message_id, "message": message})
            return _response(201, {"message": message, "id": message_id})

        if resource == "/messages/{message_id}" and method == "GET":
            message_id = (event.get("pathParameters") or {}).get("message_id")
            if not message_id:
                return _response(400, {"message": "Missing message_id"})
            item = table.get_item(Key={"id": message_id}).get("Item")
            if item is None:
                return _response(404, {"message": f"Message {message_id} not found"})
            return _response(200, {"message": item["message"], "id": item["id"]})
    except ClientError as e:
        logger.error("DynamoDB error: %s", e.response["Error"]["Message"])
        return _response(500, {"message": "Internal server error"})

    return _response(400, {"message": f"Unsupported route {method} {resource}"})
