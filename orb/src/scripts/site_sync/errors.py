#!/usr/bin/env python3
"""
errors

Exceptions raised by the site_sync workflows. Everything derives from
SiteSyncError so a pipeline script can fail the job on any of them.
"""


class SiteSyncError(Exception):
    pass


class ConfigError(SiteSyncError):
    """Deployment configuration is missing or invalid."""


class MissingStackOutputError(ConfigError):
    def __init__(self, output_key, stack_name):
        self.output_key = output_key
        self.stack_name = stack_name
        super().__init__(f"Stack {stack_name} has no output named {output_key}. "
                         f"Check the stack was deployed with a {output_key} output.")


class DistributionNotFoundError(SiteSyncError):
    def __init__(self, domain):
        self.domain = domain
        super().__init__(f"Could not find distribution with domain {domain}")


class InvalidationFailedError(SiteSyncError):
    def __init__(self, result):
        self.result = result
        super().__init__(f"Failed invalidating CloudFront cache: {result.stderr.strip() or f'exit code {result.returncode}'}")


class UnknownEventError(SiteSyncError):
    def __init__(self, name):
        self.name = name
        super().__init__(f"Unknown lifecycle event or command {name}")
