#!/usr/bin/env python3
"""Create DynamoDB tables for local development.

Creates the four GroupGo collection tables (and their query indexes) against
DynamoDB Local. Every table is keyed by ``docId``.

Usage:
    python scripts/create_local_tables.py
"""

import sys
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

# Add src to path for config import
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from groupgo.config import get_config
from groupgo.db.dynamo import DEFAULT_INDEXES, KEY_ATTRIBUTE


def create_collection_table(dynamodb, collection: str, table_name: str) -> None:
    """Create one collection table with a GSI per indexed field."""
    indexes = DEFAULT_INDEXES.get(collection, {})
    attributes = [{"AttributeName": KEY_ATTRIBUTE, "AttributeType": "S"}]
    attributes.extend({"AttributeName": field, "AttributeType": "S"} for field in indexes)

    kwargs = {
        "TableName": table_name,
        "KeySchema": [{"AttributeName": KEY_ATTRIBUTE, "KeyType": "HASH"}],
        "AttributeDefinitions": attributes,
        "BillingMode": "PAY_PER_REQUEST",
    }
    if indexes:
        kwargs["GlobalSecondaryIndexes"] = [
            {
                "IndexName": index_name,
                "KeySchema": [{"AttributeName": field, "KeyType": "HASH"}],
                "Projection": {"ProjectionType": "ALL"},
            }
            for field, index_name in indexes.items()
        ]

    try:
        dynamodb.create_table(**kwargs)
        print(f"✓ Created {table_name} table" + (f" with {len(indexes)} GSI(s)" if indexes else ""))
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            print(f"✓ {table_name} table already exists")
        else:
            raise


def main():
    """Create all DynamoDB tables."""
    config = get_config()

    endpoint_url = config.dynamodb_endpoint or "http://localhost:8000"

    print(f"Creating DynamoDB tables at {endpoint_url}...")
    print()

    # For DynamoDB Local, use dummy credentials
    dynamodb = boto3.client(
        "dynamodb",
        endpoint_url=endpoint_url,
        region_name=config.aws_region,
        aws_access_key_id="dummy",
        aws_secret_access_key="dummy",
    )

    for collection, table_name in config.table_names().items():
        create_collection_table(dynamodb, collection, table_name)

    print()
    print("✅ All DynamoDB tables ready")


if __name__ == "__main__":
    main()
