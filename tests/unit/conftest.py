from __future__ import annotations

import subprocess
from unittest.mock import MagicMock

import pytest

from site_sync.aws import AwsSession
from site_sync.config import DeployContext


@pytest.fixture
def aws_credentials(monkeypatch):
    """Mocked AWS Credentials for moto."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")  # pragma: allowlist secret
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    for var in ("AWS_ROLE_ARN", "AWS_PROFILE", "BASH_ENV"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def clean_env(monkeypatch):
    for var in ("SERVICE_NAME", "STAGE", "AWS_DEFAULT_REGION", "STACK_NAME", "S3_LOCAL_PATH",
                "BUCKET_OUTPUT_KEY", "DOMAIN_OUTPUT_KEY", "SUCCESS_MODE", "AWS_CLI",
                "SERVERLESS_CONFIG", "BASH_ENV"):
        monkeypatch.delenv(var, raising=False)


class FakeAws:
    """boto3 session stand-in with one MagicMock client per service."""

    def __init__(self):
        self.cloudformation = MagicMock(name="cloudformation")
        self.cloudfront = MagicMock(name="cloudfront")
        self.cloudformation.describe_stacks.return_value = {"Stacks": [{"Outputs": []}]}
        self.cloudfront.list_distributions.return_value = {"DistributionList": {"Items": []}}

        self.session = AwsSession("test")
        self.session.session = MagicMock(region_name="us-east-1")
        self.session.session.client.side_effect = self._client

    def _client(self, service_name, **kwargs):
        return getattr(self, service_name)

    def set_outputs(self, outputs):
        self.cloudformation.describe_stacks.return_value = {"Stacks": [{"Outputs": outputs}]}

    def set_distributions(self, items):
        self.cloudfront.list_distributions.return_value = {"DistributionList": {"Items": items}}


@pytest.fixture
def fake_aws():
    return FakeAws()


@pytest.fixture
def ctx(fake_aws):
    return DeployContext(
        service="my-site",
        stage="dev",
        region="us-east-1",
        s3_local_path="./build",
        session=fake_aws.session,
    )


def completed(args="aws", stdout="", stderr="", returncode=0):
    return subprocess.CompletedProcess(args=args, returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def fake_run(monkeypatch):
    """Replace subprocess_tee.run; returns an empty successful process by default."""
    run = MagicMock(return_value=completed())
    monkeypatch.setattr("site_sync.common._run", run)
    return run
