"""
site_sync

Sync a static site build to the S3 bucket of a deployed stack and
invalidate the CloudFront distribution in front of it.

Example Usage:
    from site_sync import loggy
    from site_sync.workflows import sync_directory
"""
__version__ = "0.1.0"
