"""Unit tests for the ECR helpers (botocore Stubber, no network)."""

from __future__ import annotations

import base64
from unittest.mock import MagicMock, patch

import boto3
import pytest
from botocore.exceptions import (
    ClientError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
)
from botocore.stub import Stubber

from greeting_service.delivery.errors import RegistryError
from greeting_service.delivery.registry import ecr_client, ensure_repository, login_credentials

REPO_URI = "123456789012.dkr.ecr.us-east-1.amazonaws.com/greeting-service"

@pytest.fixture()
def client():
    return boto3.client(
        "ecr",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )

def test_existing_repository_is_reused(client) -> None:
    with Stubber(client) as stub:
        stub.add_response(
            "describe_repositories",
            {"repositories": [{"repositoryName": "greeting-service", "repositoryUri": REPO_URI}]},
            {"repositoryNames": ["greeting-service"]},
        )
        assert ensure_repository(client, "greeting-service") == REPO_URI
        stub.assert_no_pending_responses()

def test_missing_repository_is_created(client) -> None:
    with Stubber(client) as stub:
        stub.add_client_error(
            "describe_repositories",
            service_error_code="RepositoryNotFoundException",
            expected_params={"repositoryNames": ["greeting-service"]},
        )
        stub.add_response(
            "create_repository",
            {"repository": {"repositoryName": "greeting-service", "repositoryUri": REPO_URI}},
            {"repositoryName": "greeting-service"},
        )
        assert ensure_repository(client, "greeting-service") == REPO_URI
        stub.assert_no_pending_responses()

def test_other_errors_raise_registry_error(client) -> None:
    with Stubber(client) as stub:
        stub.add_client_error("describe_repositories", service_error_code="AccessDeniedException")
        with pytest.raises(RegistryError, match="AccessDeniedException") as info:
            ensure_repository(client, "greeting-service")
    assert isinstance(info.value.__cause__, ClientError)

def test_failed_creation_raises_registry_error(client) -> None:
    with Stubber(client) as stub:
        stub.add_client_error("describe_repositories", service_error_code="RepositoryNotFoundException")
        stub.add_client_error("create_repository", service_error_code="LimitExceededException")
        with pytest.raises(RegistryError, match="Cannot create ECR repository"):
            ensure_repository(client, "greeting-service")

def test_missing_credentials_raise_registry_error() -> None:
    client = MagicMock()
    client.describe_repositories.side_effect = NoCredentialsError()
    client.get_authorization_token.side_effect = NoCredentialsError()

    with pytest.raises(RegistryError, match="Unable to locate credentials"):
        ensure_repository(client, "greeting-service")
    with pytest.raises(RegistryError, match="authorization token"):
        login_credentials(client)

def test_unreachable_endpoint_raises_registry_error() -> None:
    client = MagicMock()
    client.describe_repositories.side_effect = EndpointConnectionError(
        endpoint_url="https://api.ecr.us-east-1.amazonaws.com"
    )
    with pytest.raises(RegistryError):
        ensure_repository(client, "greeting-service")

def test_client_construction_errors_raise_registry_error() -> None:
    with patch(
        "greeting_service.delivery.registry.boto3.client",
        side_effect=NoRegionError(),
    ):
        with pytest.raises(RegistryError, match="Cannot create ECR client"):
            ecr_client("")

def test_login_credentials_decodes_token(client) -> None:
    token = base64.b64encode(b"AWS:s3cr3t:with:colons").decode()
    with Stubber(client) as stub:
        stub.add_response(
            "get_authorization_token",
            {
                "authorizationData": [
                    {
                        "authorizationToken": token,
                        "proxyEndpoint": "https://123456789012.dkr.ecr.us-east-1.amazonaws.com",
                    }
                ]
            },
        )
        username, password, registry = login_credentials(client)

    assert username == "AWS"
    assert password == "s3cr3t:with:colons"
    assert registry == "123456789012.dkr.ecr.us-east-1.amazonaws.com"

def test_ecr_client_uses_explicit_keys() -> None:
    with patch("greeting_service.delivery.registry.boto3.client") as make_client:
        ecr_client("eu-west-1", "AKIDEXAMPLE", "secret")
    make_client.assert_called_once_with(
        "ecr",
        region_name="eu-west-1",
        aws_access_key_id="AKIDEXAMPLE",
        aws_secret_access_key="secret",
    )

def test_ecr_client_falls_back_to_default_chain() -> None:
    with patch("greeting_service.delivery.registry.boto3.client") as make_client:
        ecr_client("eu-west-1")
    make_client.assert_called_once_with("ecr", region_name="eu-west-1")
