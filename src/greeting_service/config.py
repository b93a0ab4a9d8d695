"""Shared configuration loaded from environment / .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application-wide settings, populated from env vars or .env file."""

    # Serving
    app_host: str = "0.0.0.0"
    app_port: int = 8080

    # Source checkout
    repo_url: str = Field(
        default="",
        description="Git URL to clone. Leave empty to build the current working copy.",
    )
    branch: str = "main"
    workspace: str = "."

    # Build identity
    image_name: str = "greeting-service"
    build_number: str = Field(
        default="",
        description="Build counter supplied by the CI server (Jenkins exports BUILD_NUMBER).",
    )

    # Static analysis
    sonar_host_url: str = "http://localhost:9000"
    sonar_token: str = ""
    sonar_project_key: str = "greeting-service"
    sonar_sources: str = "src"
    quality_gate_timeout: float = Field(default=120.0, description="Seconds to wait for the quality gate")
    quality_gate_poll_interval: float = 5.0

    # Vulnerability scanning
    trivy_severity: str = "HIGH,CRITICAL"

    # Registry (ECR)
    aws_region: str = "us-east-1"
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    ecr_repository: str = "greeting-service"

    # Deployment
    container_name: str = "greeting-service"
    deploy_host: str = Field(
        default="",
        description=(
            "Docker host to deploy to, e.g. 'ssh://deploy@app-01'. "
            "Leave empty to deploy on the local daemon."
        ),
    )
    restart_policy: str = "unless-stopped"

    # Kubeflow
    kfp_host: str = "http://localhost:8888"
    kfp_experiment: str = "greeting-delivery"
    pipeline_tools_image: str = "greeting-service-tools:latest"
    pipeline_workspace_pvc: str = Field(
        default="greeting-delivery-workspace",
        description="Existing PersistentVolumeClaim mounted at /workspace in every step.",
    )
    pipeline_docker_host: str = Field(
        default="tcp://docker-dind:2375",
        description="Docker daemon shared by the image_build, image_scan and push steps.",
    )

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton — import `settings` wherever needed.
settings = Settings()
