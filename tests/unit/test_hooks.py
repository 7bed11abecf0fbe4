from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from conftest import completed
from site_sync import hooks, workflows
from site_sync.errors import DistributionNotFoundError, UnknownEventError


def test_routing_table():
    assert hooks.HOOKS == {
        'before:remove:remove': workflows.empty_bucket,
        'aws:deploy:finalize:cleanup': workflows.deploy,
        'syncToS3:sync': workflows.sync_directory,
        'domainInfo:domainInfo': workflows.domain_info,
        'bucketInfo:bucketInfo': workflows.bucket_info,
        'invalidateCloudFrontCache:invalidateCache': workflows.invalidate_cache,
    }


def test_every_command_event_has_a_hook():
    for name in hooks.COMMANDS:
        for event in hooks.events_for(name):
            assert event in hooks.HOOKS


@pytest.mark.parametrize("name, expected", [
    ("syncToS3", ["syncToS3:sync"]),
    ("invalidateCloudFrontCache", ["invalidateCloudFrontCache:invalidateCache"]),
    ("before:remove:remove", ["before:remove:remove"]),
])
def test_events_for(name, expected):
    assert hooks.events_for(name) == expected


def test_unknown_event():
    with pytest.raises(UnknownEventError):
        hooks.events_for("deploy:everything")


def test_dispatch_passes_context(ctx):
    handler = MagicMock(return_value="my-bucket")
    with patch.dict(hooks.HOOKS, {"bucketInfo:bucketInfo": handler}):
        assert hooks.dispatch("bucketInfo", ctx) == "my-bucket"
    handler.assert_called_once_with(ctx)


class TestRun:
    def test_info_command_succeeds_even_when_not_found(self, ctx):
        assert hooks.run("domainInfo", ctx) == 0

    def test_failed_workflow_result_exits_one(self, ctx, fake_aws, fake_run):
        fake_aws.set_outputs([{"OutputKey": "WebAppS3BucketOutput", "OutputValue": "my-bucket"}])
        fake_run.return_value = completed(stderr="boom", returncode=1)

        assert hooks.run("syncToS3", ctx) == 1

    def test_successful_workflow_exits_zero(self, ctx, fake_aws, fake_run):
        fake_aws.set_outputs([{"OutputKey": "WebAppS3BucketOutput", "OutputValue": "my-bucket"}])

        assert hooks.run("before:remove:remove", ctx) == 0

    def test_site_sync_error_exits_one(self, ctx):
        handler = MagicMock(side_effect=DistributionNotFoundError("dXYZ.cloudfront.net"))
        with patch.dict(hooks.HOOKS, {"invalidateCloudFrontCache:invalidateCache": handler}):
            assert hooks.run("invalidateCloudFrontCache", ctx) == 1

    def test_aws_error_exits_one(self, ctx, fake_aws):
        fake_aws.cloudformation.describe_stacks.side_effect = ClientError(
            {"Error": {"Code": "ValidationError", "Message": "does not exist"}}, "DescribeStacks"
        )
        assert hooks.run("bucketInfo", ctx) == 1

    def test_unknown_name_exits_one(self, ctx):
        assert hooks.run("nope", ctx) == 1


class TestMain:
    def test_help(self, capsys):
        assert hooks.main(["--help"]) == 0
        out = capsys.readouterr().out
        assert "syncToS3" in out
        assert "aws:deploy:finalize:cleanup" in out

    def test_no_arguments(self, capsys):
        assert hooks.main([]) == 1

    def test_too_many_arguments(self, capsys):
        assert hooks.main(["syncToS3", "bucketInfo"]) == 1

    def test_runs_named_command(self):
        with patch.object(hooks, "run", return_value=0) as run:
            assert hooks.main(["syncToS3"]) == 0
        run.assert_called_once_with("syncToS3")
