"""Rebuild what an AWS principal has done from the CloudTrail logs in S3."""

__version__ = '0.2.0'

from .arn import normalize_arn  # noqa: E402
from .config import ScanConfig  # noqa: E402
from .results import ResultLedger, ScanStats  # noqa: E402
from .scanner import ScanResult, TrailScanner  # noqa: E402

__all__ = ['normalize_arn', 'ScanConfig', 'ResultLedger', 'ScanStats', 'ScanResult', 'TrailScanner']
