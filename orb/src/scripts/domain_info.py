#!/usr/bin/env python3
"""
domain_info.py

Print the CloudFront domain of the deployed stack.

"""
import sys

from site_sync import loggy
from site_sync.hooks import run

loggy.info("domain_info(): BEGIN")

sys.exit(run('domainInfo'))
