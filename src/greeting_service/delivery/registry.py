"""AWS ECR helpers — repository provisioning and Docker login credentials.

Every boto3/botocore failure (missing credentials, access denied, an
unreachable endpoint) is re-raised as :class:`RegistryError` so the
pipeline records it as a failed stage.
"""

from __future__ import annotations

import base64
import logging

import boto3
import botocore.exceptions

from greeting_service.delivery.errors import RegistryError

logger = logging.getLogger(__name__)

_AWS_ERRORS = (botocore.exceptions.BotoCoreError, botocore.exceptions.ClientError)


def ecr_client(region: str, access_key_id: str = "", secret_access_key: str = ""):
    """Return a boto3 ECR client.

    Explicit keys are used when given; otherwise boto3 falls back to its
    usual credential chain (environment, profile, instance role).
    """
    kwargs = {"region_name": region}
    if access_key_id and secret_access_key:
        kwargs["aws_access_key_id"] = access_key_id
        kwargs["aws_secret_access_key"] = secret_access_key
    try:
        return boto3.client("ecr", **kwargs)
    except _AWS_ERRORS as e:
        raise RegistryError(f"Cannot create ECR client: {e}") from e


def ensure_repository(client, name: str) -> str:
    """Return the URI of repository *name*, creating it when absent."""
    try:
        response = client.describe_repositories(repositoryNames=[name])
        uri = response["repositories"][0]["repositoryUri"]
        logger.info("ECR repository %s exists: %s", name, uri)
        return uri
    except botocore.exceptions.ClientError as e:
        if e.response["Error"]["Code"] != "RepositoryNotFoundException":
            raise RegistryError(f"Cannot describe ECR repository {name}: {e}") from e
    except botocore.exceptions.BotoCoreError as e:
        raise RegistryError(f"Cannot describe ECR repository {name}: {e}") from e

    logger.info("Creating ECR repository %s", name)
    try:
        response = client.create_repository(repositoryName=name)
    except _AWS_ERRORS as e:
        raise RegistryError(f"Cannot create ECR repository {name}: {e}") from e
    return response["repository"]["repositoryUri"]


def login_credentials(client) -> tuple[str, str, str]:
    """Return ``(username, password, registry)`` for ``docker login``."""
    try:
        auth = client.get_authorization_token()["authorizationData"][0]
    except _AWS_ERRORS as e:
        raise RegistryError(f"Cannot fetch ECR authorization token: {e}") from e
    username, _, password = base64.b64decode(auth["authorizationToken"]).decode().partition(":")
    registry = auth["proxyEndpoint"].removeprefix("https://")
    return username, password, registry
