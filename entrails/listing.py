"""Shard discovery and parallel key listing for a CloudTrail bucket."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import ScanError

logger = logging.getLogger(__name__)

DEFAULT_SHARD_DEPTH = 4
DELIMITER = '/'


def list_child_prefixes(s3_client, bucket: str, prefix: str) -> List[str]:
    """Return the common prefixes one delimiter level below ``prefix``."""
    children = []
    paginator = s3_client.get_paginator('list_objects_v2')
    for page in paginator.paginate(Bucket=bucket, Prefix=prefix, Delimiter=DELIMITER):
        for common in page.get('CommonPrefixes', []):
            children.append(common['Prefix'])
    return children


def discover_shards(s3_client, bucket: str, base_prefix: str, depth: int = DEFAULT_SHARD_DEPTH) -> List[str]:
    """Walk down the ``AWSLogs/<account>/CloudTrail/<region>/<year>`` layout.

    Descends at most ``depth`` levels. A prefix without children is a leaf
    and is kept as is, so branches of uneven depth are all covered. Returns
    ``[base_prefix]`` when the archive is flat. Any listing error is fatal.
    """
    leaves = []
    frontier = [base_prefix]
    for level in range(depth):
        if not frontier:
            break
        next_level = []
        for prefix in frontier:
            try:
                children = list_child_prefixes(s3_client, bucket, prefix)
            except (ClientError, BotoCoreError) as e:
                raise ScanError(f"Could not list s3://{bucket}/{prefix}: {e}") from e
            if children:
                next_level.extend(children)
            else:
                leaves.append(prefix)
        logger.debug("Level %d: %d prefixes, %d leaves", level + 1, len(next_level), len(leaves))
        frontier = next_level
    return leaves + frontier


def list_shard(s3_client, bucket: str, prefix: str, sink: List[str], lock: threading.Lock) -> bool:
    """Append every key under ``prefix`` to ``sink``, page by page.

    A listing error abandons the remaining pages of this shard only; the keys
    already appended are kept. Returns False in that case.
    """
    paginator = s3_client.get_paginator('list_objects_v2')
    try:
        for page in paginator.paginate(Bucket=bucket, Prefix=prefix):
            keys = [obj['Key'] for obj in page.get('Contents', [])]
            if keys:
                with lock:
                    sink.extend(keys)
    except (ClientError, BotoCoreError) as e:
        logger.warning("Listing of s3://%s/%s abandoned: %s", bucket, prefix, e)
        return False
    return True


def list_log_keys(s3_client, bucket: str, prefixes: List[str], threads: int,
                  on_shard_done: Optional[Callable[[bool], None]] = None) -> List[str]:
    """List all keys under ``prefixes`` with one task per shard."""
    all_keys: List[str] = []
    lock = threading.Lock()

    with ThreadPoolExecutor(max_workers=threads) as executor:
        futures = [executor.submit(list_shard, s3_client, bucket, prefix, all_keys, lock) for prefix in prefixes]
        for future in as_completed(futures):
            ok = future.result()
            if on_shard_done:
                on_shard_done(ok)

    return all_keys
