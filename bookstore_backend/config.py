"""
Configuration and AWS client construction for the Bookstore API

This module provides:
- Settings resolved from the process environment
- AWS service clients (S3, DynamoDB) built from those settings
- Constants used across handlers
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

import boto3
from botocore.config import Config

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource
    from mypy_boto3_s3.client import S3Client

logger = logging.getLogger(__name__)

# Constants
UPLOAD_URL_EXPIRY_SECONDS = 5 * 60  # presigned PUT for cover uploads
READ_URL_EXPIRY_SECONDS = 10 * 60  # presigned GET for cover display
MAX_STRING_LENGTH = 500  # Maximum length for string fields
COVERS_FOLDER = "covers"

BACKEND_DYNAMODB = "dynamodb"
BACKEND_MONGODB = "mongodb"
AUTH_MODES = ("none", "cognito")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(Exception):
    """Raised when the environment does not describe a usable configuration."""


@dataclass(frozen=True)
class Settings:
    books_backend: str = BACKEND_DYNAMODB
    mongodb_connection_string: str | None = None
    database_name: str = "BookstoreDB"
    books_table: str = "Books"
    aws_region: str = "us-east-2"
    dynamodb_endpoint_url: str | None = None
    s3_endpoint_url: str | None = None
    storage_access_key_id: str | None = None
    storage_secret_access_key: str | None = None
    covers_bucket: str = "covers"
    api_base_path: str = ""
    auth_mode: str = "none"
    admin_group: str = "admins"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"


def _get(environ: Mapping[str, str], name: str, default: str | None = None) -> str | None:
    value = environ.get(name, "").strip()
    return value or default


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """
    Resolve settings from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        Settings: Immutable settings for this process

    Raises:
        ConfigError: If a required value is missing or a value is invalid
    """
    if environ is None:
        environ = os.environ

    connection_string = _get(environ, "MONGODB_CONNECTION_STRING")
    backend = _get(
        environ,
        "BOOKS_BACKEND",
        BACKEND_MONGODB if connection_string else BACKEND_DYNAMODB,
    ).lower()

    if backend not in (BACKEND_DYNAMODB, BACKEND_MONGODB):
        raise ConfigError(f"Unknown BOOKS_BACKEND: {backend}")
    if backend == BACKEND_MONGODB and not connection_string:
        raise ConfigError("Missing MONGODB_CONNECTION_STRING for the mongodb backend")

    access_key_id = _get(environ, "STORAGE_ACCESS_KEY_ID")
    secret_access_key = _get(environ, "STORAGE_SECRET_ACCESS_KEY")
    if bool(access_key_id) != bool(secret_access_key):
        raise ConfigError(
            "STORAGE_ACCESS_KEY_ID and STORAGE_SECRET_ACCESS_KEY must be set together"
        )
    if not access_key_id:
        logger.warning("Storage access key not set, using the default AWS credential chain")

    auth_mode = _get(environ, "AUTH_MODE", "none").lower()
    if auth_mode not in AUTH_MODES:
        raise ConfigError(f"Unknown AUTH_MODE: {auth_mode}")

    port_value = _get(environ, "PORT", "3000")
    try:
        port = int(port_value)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {port_value!r}") from None
    if not 0 < port < 65536:
        raise ConfigError(f"PORT out of range: {port}")

    log_level = _get(environ, "LOG_LEVEL", "INFO").upper()
    if log_level not in LOG_LEVELS:
        raise ConfigError(f"Unknown LOG_LEVEL: {log_level}")

    base_path = _get(environ, "API_BASE_PATH", "").rstrip("/")
    if base_path and not base_path.startswith("/"):
        base_path = f"/{base_path}"

    return Settings(
        books_backend=backend,
        mongodb_connection_string=connection_string,
        database_name=_get(environ, "BOOKS_DATABASE", "BookstoreDB"),
        books_table=_get(environ, "BOOKS_TABLE", "Books"),
        aws_region=_get(environ, "AWS_REGION", "us-east-2"),
        dynamodb_endpoint_url=_get(environ, "DYNAMODB_ENDPOINT_URL"),
        s3_endpoint_url=_get(environ, "S3_ENDPOINT_URL"),
        storage_access_key_id=access_key_id,
        storage_secret_access_key=secret_access_key,
        covers_bucket=_get(environ, "COVERS_BUCKET", "covers"),
        api_base_path=base_path,
        auth_mode=auth_mode,
        admin_group=_get(environ, "ADMIN_GROUP", "admins"),
        host=_get(environ, "HOST", "0.0.0.0"),
        port=port,
        log_level=log_level,
    )


def create_s3_client(settings: Settings) -> "S3Client":
    """Build the S3 client used to sign cover URLs."""
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
        aws_access_key_id=settings.storage_access_key_id,
        aws_secret_access_key=settings.storage_secret_access_key,
        config=Config(signature_version="s3v4"),
    )


def create_dynamodb_resource(settings: Settings) -> "DynamoDBServiceResource":
    return boto3.resource(
        "dynamodb",
        region_name=settings.aws_region,
        endpoint_url=settings.dynamodb_endpoint_url,
    )
