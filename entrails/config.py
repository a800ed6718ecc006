"""Scan configuration and AWS client construction."""
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config

from .arn import normalize_arn
from .errors import ConfigError
from .listing import DEFAULT_SHARD_DEPTH

DEFAULT_THREADS = 10


@dataclass(frozen=True)
class ScanConfig:
    bucket: str
    prefix: str
    identity: str
    threads: int = DEFAULT_THREADS
    shard_depth: int = DEFAULT_SHARD_DEPTH
    profile: Optional[str] = None
    region: Optional[str] = None
    output: Optional[str] = None
    out_json: Optional[str] = None

    def __post_init__(self):
        if not self.bucket:
            raise ConfigError("A bucket name is required")
        if not self.identity:
            raise ConfigError("A target identity is required")
        if self.threads < 1:
            raise ConfigError(f"threads must be at least 1, got {self.threads}")
        if self.shard_depth < 0:
            raise ConfigError(f"shard depth cannot be negative, got {self.shard_depth}")
        # Compare against the same canonical form the records are reduced to
        object.__setattr__(self, 'identity', normalize_arn(self.identity))


def boto_config(threads: int) -> Config:
    # Every worker thread shares one client, so size the pool to match
    return Config(
        retries={'max_attempts': 3, 'mode': 'standard'},
        max_pool_connections=max(threads, 10),
    )


def get_session(profile: Optional[str] = None, region: Optional[str] = None):
    """Create a boto3 session from a named profile or the default credential chain."""
    return boto3.Session(profile_name=profile, region_name=region)


def get_s3_client(session, threads: int = DEFAULT_THREADS):
    return session.client('s3', config=boto_config(threads))


def get_caller_arn(session) -> str:
    """Return the normalized ARN of whoever the session authenticates as."""
    sts = session.client('sts', config=boto_config(1))
    return normalize_arn(sts.get_caller_identity()['Arn'])
