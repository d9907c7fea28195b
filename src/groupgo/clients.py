"""Lazy-initialized shared clients, built once per process."""

from functools import lru_cache
from typing import Any

import boto3
import httpx

from groupgo.config import Config, get_config


@lru_cache(maxsize=4)
def get_dynamo_client(region: str, endpoint_url: str | None = None) -> Any:
    return boto3.client("dynamodb", region_name=region, endpoint_url=endpoint_url)


def create_payment_http_client(config: Config | None = None) -> httpx.AsyncClient:
    """New client for the payment backend; the caller owns it and must close it."""
    config = config or get_config()
    return httpx.AsyncClient(
        base_url=config.payment_backend_url,
        timeout=config.payment_timeout_seconds,
        headers={"Content-Type": "application/json"},
    )
