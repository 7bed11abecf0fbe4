#!/usr/bin/env python3
"""
invalidate_cloudfront_cache.py

Invalidate /* on the CloudFront distribution serving the stack's domain.

"""
import sys

from site_sync import loggy
from site_sync.hooks import run

loggy.info("invalidate_cloudfront_cache(): BEGIN")

sys.exit(run('invalidateCloudFrontCache'))
