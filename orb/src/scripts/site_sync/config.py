#!/usr/bin/env python3
"""
config

Build the DeployContext every workflow receives. Values come from the
serverless.yml service file and are overridden by pipeline environment
variables (including any exports left in BASH_ENV by earlier steps).

Example Usage:
    from site_sync.config import load_context
    ctx = load_context()
"""
import os
import re
import typing
from dataclasses import dataclass, field

import yaml

from site_sync import loggy
from site_sync.aws import AwsSession, DEFAULT_REGION, get_session_env, init_session
from site_sync.common import (SUCCESS_MODES, SUCCESS_MODE_STDERR, add_bash_exports_to_env,
                              get_environ, resolve_pipeline_variable)
from site_sync.errors import ConfigError

DEFAULT_CONFIG_FILE = "serverless.yml"
DEFAULT_STAGE = "dev"
BUCKET_OUTPUT_KEY = "WebAppS3BucketOutput"
DOMAIN_OUTPUT_KEY = "WebAppCloudFrontDistributionOutput"


class CfnTag(typing.NamedTuple):
    """A CloudFormation short-form value (!Ref, !GetAtt, !Sub ...) kept as-is."""
    tag: str
    value: typing.Any


class ServiceFileLoader(yaml.SafeLoader):
    pass


def _construct_cfn_tag(loader, tag_suffix, node):
    if isinstance(node, yaml.ScalarNode):
        value = loader.construct_scalar(node)
    elif isinstance(node, yaml.SequenceNode):
        value = loader.construct_sequence(node, deep=True)
    else:
        value = loader.construct_mapping(node, deep=True)
    return CfnTag(f"!{tag_suffix}", value)


ServiceFileLoader.add_multi_constructor('!', _construct_cfn_tag)

# ${source:address, fallback}, innermost first so nested references resolve
SERVERLESS_VARIABLE = re.compile(r"\$\{\s*([^{}]+?)\s*\}")

# where to set each value when its serverless variable cannot be resolved here
ENV_FOR_FIELD = {
    'service': 'SERVICE_NAME',
    'stage': 'STAGE',
    'region': 'AWS_DEFAULT_REGION',
    'stack_name': 'STACK_NAME',
    's3_local_path': 'S3_LOCAL_PATH',
}


def stack_name_for(service: str, stage: str) -> str:
    """Serverless naming convention: <service>-<stage>"""
    return f"{service}-{stage}"


@dataclass
class DeployContext:
    service: str
    stage: str = DEFAULT_STAGE
    region: str = DEFAULT_REGION
    stack_name: typing.Optional[str] = None
    s3_local_path: typing.Optional[str] = None
    bucket_output_key: str = BUCKET_OUTPUT_KEY
    domain_output_key: str = DOMAIN_OUTPUT_KEY
    success_mode: str = SUCCESS_MODE_STDERR
    aws_cli: str = "aws"
    session: typing.Optional[AwsSession] = field(default=None, repr=False)

    def __post_init__(self):
        if not self.service:
            raise ConfigError("A service name is required (serverless.yml `service` or SERVICE_NAME).")
        if self.success_mode not in SUCCESS_MODES:
            raise ConfigError(f"SUCCESS_MODE must be one of {', '.join(SUCCESS_MODES)}, got {self.success_mode!r}")
        if not self.stack_name:
            self.stack_name = stack_name_for(self.service, self.stage)

    def get_session(self) -> AwsSession:
        if self.session is None:
            self.session = init_session(region=self.region)
        return self.session

    def command_env(self) -> dict:
        return get_session_env(self.get_session())

    def require_local_path(self) -> str:
        if not self.s3_local_path:
            raise ConfigError("No local directory to sync. Set custom.s3LocalPath in serverless.yml or S3_LOCAL_PATH.")
        return self.s3_local_path


def read_service_file(path: str) -> dict:
    """
    read_service_file()

    Load a serverless.yml style file. A missing file is not an error, the
    environment may carry everything.

    Returns: dict (empty if the file does not exist)
    """
    if not os.path.exists(path):
        loggy.info(f"config.read_service_file(): {path} not found, using environment only")
        return {}

    with open(path, 'r') as service_file:
        try:
            data = yaml.load(service_file, Loader=ServiceFileLoader)
        except yaml.YAMLError as e:
            raise ConfigError(f"Could not parse {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def _service_name(data: dict) -> typing.Optional[str]:
    service = data.get('service')
    # serverless accepts both `service: name` and `service: {name: name}`
    if isinstance(service, dict):
        return service.get('name')
    return service


def _lookup_self(data: dict, address: str):
    value = data
    for part in address.split('.'):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value if isinstance(value, (str, int, float)) else None


def _fallback(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def resolve_serverless_variables(value, data: dict, options: dict):
    """
    resolve_serverless_variables()

    Resolve the serverless variable sources a pipeline can answer without the
    framework: ${opt:stage}, ${opt:region}, ${sls:stage}, ${self:a.b}, ${env:VAR},
    each with an optional `, 'default'`. Anything else is left in place.

    value: String from the service file
    data: the whole service file, for ${self:...}
    options: {"stage": ..., "region": ...} from the environment, None when unset

    Returns: String with every resolvable reference replaced
    """
    if not isinstance(value, str):
        return value

    def _replace(match):
        source, _, fallback = match.group(1).partition(',')
        kind, _, address = source.strip().partition(':')
        resolved = None
        if kind == 'opt':
            resolved = options.get(address.strip())
        elif kind == 'sls' and address.strip() == 'stage':
            resolved = options.get('sls_stage') or options.get('stage')
        elif kind == 'self':
            resolved = _lookup_self(data, address.strip())
        elif kind == 'env':
            resolved = os.environ.get(address.strip()) or None
        if resolved is None and fallback.strip():
            resolved = _fallback(fallback)
        return match.group(0) if resolved is None else str(resolved)

    for _ in range(10):
        new_value = SERVERLESS_VARIABLE.sub(_replace, value)
        if new_value == value:
            break
        value = new_value
    return value


def _check_resolved(values: dict):
    for name, env in ENV_FOR_FIELD.items():
        value = values.get(name)
        if isinstance(value, str) and "${" in value:
            raise ConfigError(f"Could not resolve {name} {value!r} from the service file. Set {env} in the environment.")


def load_context(path: typing.Optional[str] = None, **overrides) -> DeployContext:
    """
    load_context()

    Resolve the deployment configuration into a DeployContext.

    path: (Optional) service file, defaults to SERVERLESS_CONFIG or serverless.yml
    overrides: any DeployContext field, wins over both file and environment

    Returns: DeployContext
    """
    add_bash_exports_to_env()

    path = path or get_environ('SERVERLESS_CONFIG', DEFAULT_CONFIG_FILE)
    data = read_service_file(path)
    provider = data.get('provider') or {}
    custom = data.get('custom') or {}

    options = {'stage': get_environ('STAGE'), 'region': get_environ('AWS_DEFAULT_REGION')}
    options['sls_stage'] = options['stage'] or resolve_serverless_variables(provider.get('stage'), data, options) or DEFAULT_STAGE

    def _from_file(value):
        return resolve_serverless_variables(value, data, options)

    values = {
        'service': get_environ('SERVICE_NAME', _from_file(_service_name(data))),
        'stage': options['sls_stage'],
        'region': get_environ('AWS_DEFAULT_REGION', _from_file(provider.get('region')) or DEFAULT_REGION),
        'stack_name': get_environ('STACK_NAME'),
        's3_local_path': get_environ('S3_LOCAL_PATH', _from_file(custom.get('s3LocalPath'))),
        'bucket_output_key': get_environ('BUCKET_OUTPUT_KEY', BUCKET_OUTPUT_KEY),
        'domain_output_key': get_environ('DOMAIN_OUTPUT_KEY', DOMAIN_OUTPUT_KEY),
        'success_mode': get_environ('SUCCESS_MODE', SUCCESS_MODE_STDERR),
        'aws_cli': get_environ('AWS_CLI', "aws"),
    }
    values = {k: resolve_pipeline_variable(v) for k, v in values.items()}
    values.update(overrides)
    _check_resolved(values)

    ctx = DeployContext(**values)
    loggy.info(f"config.load_context(): service={ctx.service} stage={ctx.stage} region={ctx.region} stack={ctx.stack_name}")
    return ctx
