#!/usr/bin/env python3
"""
hooks

Routing table from deployment lifecycle events and commands to the site_sync
workflows, and the `site-sync` console entry point.

Example Usage:
    site-sync syncToS3
    site-sync aws:deploy:finalize:cleanup
"""
import sys
import typing

from botocore.exceptions import BotoCoreError, ClientError

from site_sync import loggy
from site_sync import workflows
from site_sync.config import DeployContext, load_context
from site_sync.errors import SiteSyncError, UnknownEventError

COMMANDS = {
    'syncToS3': {
        'usage': 'Deploys the `s3LocalPath` directory to your bucket',
        'lifecycleEvents': ['sync'],
    },
    'bucketInfo': {
        'usage': 'Fetches and prints out the deployed CloudFront bucket names',
        'lifecycleEvents': ['bucketInfo'],
    },
    'domainInfo': {
        'usage': 'Fetches and prints out the deployed CloudFront domain names',
        'lifecycleEvents': ['domainInfo'],
    },
    'invalidateCloudFrontCache': {
        'usage': 'Invalidates CloudFront cache',
        'lifecycleEvents': ['invalidateCache'],
    },
}

HOOKS: typing.Dict[str, typing.Callable[[DeployContext], typing.Any]] = {
    'before:remove:remove': workflows.empty_bucket,
    'aws:deploy:finalize:cleanup': workflows.deploy,
    'syncToS3:sync': workflows.sync_directory,
    'domainInfo:domainInfo': workflows.domain_info,
    'bucketInfo:bucketInfo': workflows.bucket_info,
    'invalidateCloudFrontCache:invalidateCache': workflows.invalidate_cache,
}


def events_for(name: str) -> typing.List[str]:
    """
    events_for()

    A command name expands to its lifecycle events, a hook name is itself.
    """
    if name in COMMANDS:
        return [f"{name}:{event}" for event in COMMANDS[name]['lifecycleEvents']]
    if name in HOOKS:
        return [name]
    raise UnknownEventError(name)


def dispatch(name: str, ctx: DeployContext):
    """
    dispatch()

    Run the workflow(s) bound to a command or lifecycle event, in order.

    Returns: the result of the last workflow run
    """
    result = None
    for event in events_for(name):
        loggy.info(f"hooks.dispatch(): {event}")
        result = HOOKS[event](ctx)
    return result


def usage() -> str:
    lines = ["usage: site-sync <command|lifecycle-event>", "", "commands:"]
    for name, command in COMMANDS.items():
        lines.append(f"  {name:<28}{command['usage']}")
    lines.append("")
    lines.append("lifecycle events:")
    for event in HOOKS:
        lines.append(f"  {event}")
    return "\n".join(lines)


def exit_code(result) -> int:
    # info commands return the output value (or None), which is never a failure
    if isinstance(result, (workflows.WorkflowResult, workflows.DeployResult)):
        return 0 if result.ok else 1
    return 0


def run(name: str, ctx: typing.Optional[DeployContext] = None) -> int:
    """
    run()

    Load the context (unless given) and dispatch, turning failures into an
    exit code for the pipeline.

    Returns: 0 on success, 1 on failure
    """
    try:
        ctx = load_context() if ctx is None else ctx
        return exit_code(dispatch(name, ctx))
    except SiteSyncError as e:
        loggy.error(f"hooks.run(): {name}: {e}")
    except (ClientError, BotoCoreError) as e:
        loggy.error(f"hooks.run(): {name}: AWS error: {e}")
    return 1


def main(argv: typing.Optional[typing.List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    if not argv or argv[0] in ('-h', '--help'):
        print(usage())
        return 0 if argv else 1

    if len(argv) > 1:
        loggy.error(f"hooks.main(): expected one command, got {' '.join(argv)}")
        print(usage())
        return 1

    return run(argv[0])


if __name__ == '__main__':
    sys.exit(main())
