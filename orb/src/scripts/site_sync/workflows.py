#!/usr/bin/env python3
"""
workflows

The site_sync operations. Each takes the DeployContext explicitly and runs
strictly in sequence: stack output lookups, distribution listing and the aws
cli all block until they return.

    sync_directory    s3 sync <local> s3://<bucket>/ --delete
    empty_bucket      s3 rm s3://<bucket>/ --recursive
    invalidate_cache  cloudfront create-invalidation --paths /*
    deploy            sync_directory then invalidate_cache
    bucket_info       print the bucket output
    domain_info       print the distribution domain output

Example Usage:
    from site_sync.config import load_context
    from site_sync.workflows import deploy
    deploy(load_context())
"""
import typing
from dataclasses import dataclass

from site_sync import loggy
from site_sync.aws import (cloudformation_get_stack_output, cloudfront_invalidation_args,
                           cloudfront_list_distributions, find_distribution, s3_rm_args,
                           s3_sync_args)
from site_sync.common import CommandResult, run_aws_command
from site_sync.config import DeployContext
from site_sync.errors import DistributionNotFoundError, InvalidationFailedError, MissingStackOutputError

NOT_FOUND = "Not Found"


@dataclass
class WorkflowResult:
    name: str
    command: CommandResult
    ok: bool

    def __bool__(self):
        return self.ok


@dataclass
class DeployResult:
    sync: WorkflowResult
    invalidation: WorkflowResult

    @property
    def ok(self) -> bool:
        return self.sync.ok and self.invalidation.ok

    def __bool__(self):
        return self.ok


def get_output(ctx: DeployContext, output_key: str) -> typing.Optional[str]:
    return cloudformation_get_stack_output(output_key, ctx.stack_name, session=ctx.get_session(), region=ctx.region)


def require_output(ctx: DeployContext, output_key: str) -> str:
    """Like get_output() but an absent output is a configuration error."""
    value = get_output(ctx, output_key)
    if not value:
        raise MissingStackOutputError(output_key, ctx.stack_name)
    return value


def run_command(ctx: DeployContext, args: typing.List[str]) -> CommandResult:
    return run_aws_command(args, env=ctx.command_env(), executable=ctx.aws_cli)


def _run_and_report(ctx: DeployContext, name: str, args: typing.List[str], success_message: str) -> WorkflowResult:
    loggy.log(args)
    result = run_command(ctx, args)
    loggy.log(result.stdout or 'stdout undefined')
    loggy.log(result.stderr or 'stderr undefined')

    ok = result.succeeded(ctx.success_mode)
    if ok:
        if result.stderr:
            loggy.warning(f"workflows.{name}(): aws cli exited 0 but wrote to stderr")
        loggy.log(success_message)
    else:
        loggy.error(f"workflows.{name}(): aws {' '.join(args[:2])} failed (exit code {result.returncode})")

    return WorkflowResult(name=name, command=result, ok=ok)


def sync_directory(ctx: DeployContext) -> WorkflowResult:
    """
    sync_directory()

    Mirror the local build directory into the stack's bucket, deleting remote
    objects that no longer exist locally. Destructive, there is no dry run.

    Returns: WorkflowResult
    """
    loggy.info("workflows.sync_directory(): BEGIN")
    bucket = require_output(ctx, ctx.bucket_output_key)
    local_path = ctx.require_local_path()
    return _run_and_report(ctx, "sync_directory", s3_sync_args(local_path, bucket),
                           "Successfully synced to the S3 bucket")


def empty_bucket(ctx: DeployContext) -> WorkflowResult:
    """
    empty_bucket()

    Delete every object in the stack's bucket so stack removal can delete the
    bucket itself.

    Returns: WorkflowResult
    """
    loggy.info("workflows.empty_bucket(): BEGIN")
    bucket = require_output(ctx, ctx.bucket_output_key)
    return _run_and_report(ctx, "empty_bucket", s3_rm_args(bucket),
                           "Successfully emptied the S3 bucket")


def bucket_info(ctx: DeployContext) -> typing.Optional[str]:
    value = get_output(ctx, ctx.bucket_output_key)
    loggy.log(f"Web App Bucket: {value or NOT_FOUND}")
    return value


def domain_info(ctx: DeployContext) -> typing.Optional[str]:
    value = get_output(ctx, ctx.domain_output_key)
    loggy.log(f"Web App Domain: {value or NOT_FOUND}")
    return value


def invalidate_cache(ctx: DeployContext) -> WorkflowResult:
    """
    invalidate_cache()

    Find the distribution serving the stack's domain and invalidate /* on it.

    The first page of ListDistributions is searched in order and the first
    distribution with a matching DomainName wins.

    Raises:
        MissingStackOutputError: the stack has no domain output
        DistributionNotFoundError: no listed distribution serves the domain
        InvalidationFailedError: the aws cli reported a failure

    Returns: WorkflowResult
    """
    loggy.info("workflows.invalidate_cache(): BEGIN")
    domain = domain_info(ctx)
    if not domain:
        raise MissingStackOutputError(ctx.domain_output_key, ctx.stack_name)

    distributions = cloudfront_list_distributions(session=ctx.get_session(), region=ctx.region)
    distribution = find_distribution(distributions, domain)

    if distribution is None:
        error = DistributionNotFoundError(domain)
        loggy.log(str(error))
        raise error

    loggy.log(f"Invalidating CloudFront distribution with id: {distribution['Id']}")
    args = cloudfront_invalidation_args(distribution['Id'])
    result = run_command(ctx, args)

    if not result.succeeded(ctx.success_mode):
        loggy.error(f"workflows.invalidate_cache(): {result.stderr.strip()}")
        raise InvalidationFailedError(result)

    if result.stderr:
        loggy.warning(f"workflows.invalidate_cache(): aws cli exited 0 but wrote to stderr: {result.stderr.strip()}")
    loggy.log("Successfully invalidated CloudFront cache")
    return WorkflowResult(name="invalidate_cache", command=result, ok=True)


def deploy(ctx: DeployContext) -> DeployResult:
    """
    deploy()

    sync_directory() then invalidate_cache(). A sync whose command failed does
    not stop the invalidation; exceptions raised by the sync do.

    Returns: DeployResult
    """
    loggy.info("workflows.deploy(): BEGIN")
    sync = sync_directory(ctx)
    if not sync.ok:
        loggy.warning("workflows.deploy(): sync reported a failure, invalidating the cache anyway")
    invalidation = invalidate_cache(ctx)
    return DeployResult(sync=sync, invalidation=invalidation)
