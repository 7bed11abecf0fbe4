#!/usr/bin/env python3
"""
aws

Common code for the AWS calls site_sync needs: a boto3 session built from the
pipeline environment, stack output lookups, CloudFront distribution lookups and
the aws cli argument lists for S3 and CloudFront.

Example Usage:
    from site_sync import aws
    from site_sync.aws import cloudformation_get_stack_output
"""
import os
import typing

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from site_sync import loggy

DEFAULT_REGION = "us-east-1"
INVALIDATE_ALL_PATHS = "/*"


class AwsCreds():
    access_key = None
    secret_access_key = None
    session_token = None
    region = None


class AwsSession():
    session = None
    creds = None
    name = None

    def __init__(self, name):
        self.creds = AwsCreds()
        self.name = name
        self.session = None


"""
Global Utils
"""

def init_session(region: typing.Optional[str] = None) -> AwsSession:
    """
    init_session()

    This function initializes a boto3 AWS session for use in boto3 clients, using
    the pipeline environment credentials.

    It will prefer an IAM Role before attempting to use a profile or IAM User Keys,
    and falls back to the default boto3 credential chain.

    region: String defaults to AWS_DEFAULT_REGION or us-east-1

    Returns a reusable AwsSession object
    """
    _s = AwsSession("site-sync")
    _s.creds.region = region or os.environ.get('AWS_DEFAULT_REGION', DEFAULT_REGION)

    if os.environ.get('AWS_ROLE_ARN') and (os.environ.get('CIRCLE_OIDC_TOKEN_V2') or os.environ.get('AWS_WEB_IDENTITY_TOKEN_FILE')):
        loggy.info("aws.init_session(): Generating boto3 session from Iam Role and Web Identity Token")

        web_identity_token = os.environ.get('CIRCLE_OIDC_TOKEN_V2')

        if os.environ.get('AWS_WEB_IDENTITY_TOKEN_FILE'):
            with open(os.environ['AWS_WEB_IDENTITY_TOKEN_FILE'], "r") as content_file:
                web_identity_token = content_file.read()

        sts_client = boto3.client('sts', region_name=_s.creds.region)
        assumed_role_object = sts_client.assume_role_with_web_identity(
                RoleArn=os.environ.get('AWS_ROLE_ARN'),
                WebIdentityToken=web_identity_token,
                RoleSessionName="SiteSyncSession"
            )

        credentials = assumed_role_object['Credentials']
        _s.creds.access_key = credentials['AccessKeyId']
        _s.creds.secret_access_key = credentials['SecretAccessKey']
        _s.creds.session_token = credentials['SessionToken']

        _s.session = boto3.Session(
            aws_access_key_id=_s.creds.access_key,
            aws_secret_access_key=_s.creds.secret_access_key,
            aws_session_token=_s.creds.session_token,
            region_name=_s.creds.region
        )

    elif os.environ.get('AWS_PROFILE'):
        loggy.info("aws.init_session(): Generating boto3 session from AWS_PROFILE")
        _s.session = boto3.Session(
            profile_name=os.environ.get('AWS_PROFILE'),
            region_name=_s.creds.region)

    elif os.environ.get('AWS_ACCESS_KEY_ID') and os.environ.get('AWS_SECRET_ACCESS_KEY'):
        loggy.info("aws.init_session(): Generating boto3 session from accesskey and secret")
        _s.creds.access_key = os.environ.get('AWS_ACCESS_KEY_ID')
        _s.creds.secret_access_key = os.environ.get('AWS_SECRET_ACCESS_KEY')
        _s.creds.session_token = os.environ.get('AWS_SESSION_TOKEN')

        _s.session = boto3.Session(
            aws_access_key_id=_s.creds.access_key,
            aws_secret_access_key=_s.creds.secret_access_key,
            aws_session_token=_s.creds.session_token,
            region_name=_s.creds.region)

    else:
        loggy.info("aws.init_session(): Generating boto3 session from the default credential chain")
        _s.session = boto3.Session(region_name=_s.creds.region)

    return _s


def get_session_env(session: typing.Optional[AwsSession] = None) -> dict:
    """
    get_session_env()

    Build the environment for an aws cli subprocess so it runs with the same
    credentials and region as the boto3 session.

    returns: new os.environ.copy() modified with session credentials
    """
    _s = init_session() if session is None else session

    new_env = os.environ.copy()
    if _s.creds.access_key:
        new_env['AWS_ACCESS_KEY_ID'] = _s.creds.access_key
    if _s.creds.secret_access_key:
        new_env['AWS_SECRET_ACCESS_KEY'] = _s.creds.secret_access_key
    if _s.creds.session_token:
        new_env['AWS_SESSION_TOKEN'] = _s.creds.session_token
    if _s.creds.region:
        new_env['AWS_DEFAULT_REGION'] = _s.creds.region

    return new_env


"""
CloudFormation Utils
"""

def cloudformation_get_stack_outputs(stack_name: str, session: typing.Optional[AwsSession] = None, region: typing.Optional[str] = None) -> list:
    """
    cloudformation_get_stack_outputs()

    Describe a deployed stack and return its Outputs list. A stack without
    outputs returns an empty list. API errors (including a missing stack) are
    logged and raised.

    stack_name: String name of the deployed stack i.e. "my-site-dev"

    Returns: list of {"OutputKey": ..., "OutputValue": ...} dicts
    """
    _s = init_session() if session is None else session
    _r = _s.session.region_name if region is None else region

    loggy.info(f"aws.cloudformation_get_stack_outputs(): BEGIN (using session named: {_s.name}) stack: {stack_name}")

    try:
        client = _s.session.client('cloudformation', region_name=_r)
        response = client.describe_stacks(StackName=stack_name)
    except (ClientError, BotoCoreError) as e:
        loggy.error(f"aws.cloudformation_get_stack_outputs(): Error: {str(e)}")
        raise

    return response['Stacks'][0].get('Outputs', [])


def find_output_value(outputs: list, output_key: str) -> typing.Optional[str]:
    """First OutputValue whose OutputKey matches, else None."""
    for entry in outputs:
        if entry.get('OutputKey') == output_key:
            return entry.get('OutputValue')
    return None


def cloudformation_get_stack_output(output_key: str, stack_name: str, session: typing.Optional[AwsSession] = None, region: typing.Optional[str] = None) -> typing.Optional[str]:
    """
    cloudformation_get_stack_output()

    Get a single output value from a deployed stack. Nothing is cached, every
    call describes the stack again.

    output_key: String OutputKey i.e. "WebAppS3BucketOutput"
    stack_name: String name of the deployed stack

    Returns: String OutputValue or None if the stack has no such output
    """
    value = find_output_value(cloudformation_get_stack_outputs(stack_name, session=session, region=region), output_key)
    if value is None:
        loggy.warning(f"aws.cloudformation_get_stack_output(): {output_key} not found in stack {stack_name}")
    return value


"""
CloudFront Utils
"""

def cloudfront_list_distributions(session: typing.Optional[AwsSession] = None, region: typing.Optional[str] = None) -> list:
    """
    cloudfront_list_distributions()

    List the CloudFront distributions visible to the account. Only the first
    page is read; if the listing is truncated a warning is logged.

    Returns: list of distribution summaries (each with at least Id and DomainName)
    """
    _s = init_session() if session is None else session
    _r = _s.session.region_name if region is None else region

    loggy.info(f"aws.cloudfront_list_distributions(): BEGIN (using session named: {_s.name})")

    try:
        client = _s.session.client('cloudfront', region_name=_r)
        response = client.list_distributions()
    except (ClientError, BotoCoreError) as e:
        loggy.error(f"aws.cloudfront_list_distributions(): Error: {str(e)}")
        raise

    distribution_list = response.get('DistributionList', {})
    if distribution_list.get('IsTruncated'):
        loggy.warning("aws.cloudfront_list_distributions(): Listing is truncated, only the first page is searched.")

    return distribution_list.get('Items', [])


def find_distribution(distributions: list, domain: str) -> typing.Optional[dict]:
    """
    find_distribution()

    Return the first distribution whose DomainName equals domain, in listing order.
    """
    for distribution in distributions:
        if distribution.get('DomainName') == domain:
            return distribution
    return None


"""
aws cli arguments
"""

def s3_url(bucket: str) -> str:
    return f"s3://{bucket}/"


def s3_sync_args(local_path: str, bucket: str) -> typing.List[str]:
    return ["s3", "sync", local_path, s3_url(bucket), "--delete"]


def s3_rm_args(bucket: str) -> typing.List[str]:
    return ["s3", "rm", s3_url(bucket), "--recursive"]


def cloudfront_invalidation_args(distribution_id: str, paths: str = INVALIDATE_ALL_PATHS) -> typing.List[str]:
    return ["cloudfront", "create-invalidation", "--distribution-id", distribution_id, "--paths", paths]
