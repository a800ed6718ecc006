"""Discovery -> listing -> processing pipeline.

The pipeline is not cancellable: once :meth:`TrailScanner.run` starts it
either completes or raises from discovery.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .config import ScanConfig
from .listing import discover_shards, list_log_keys
from .processor import ProcessOutcome, process_log_object
from .results import ResultLedger, ScanStats

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    identity: str
    actions: List[Tuple[str, str]]
    secrets: List[str]
    stats: Dict[str, int] = field(default_factory=dict)


class _NoProgress:
    def update(self, n=1):
        pass

    def close(self):
        pass


def _no_progress(**kwargs):
    return _NoProgress()


class TrailScanner:
    """Reconstructs what one principal did from a CloudTrail bucket.

    ``progress_factory`` is called like ``tqdm(total=..., desc=..., unit=...)``
    and must return an object with ``update`` and ``close``.
    """

    def __init__(self, config: ScanConfig, s3_client, progress_factory: Optional[Callable] = None):
        self.config = config
        self.s3_client = s3_client
        self.progress_factory = progress_factory or _no_progress
        self.ledger = ResultLedger()
        self.stats = ScanStats()

    def discover(self) -> List[str]:
        prefixes = discover_shards(self.s3_client, self.config.bucket, self.config.prefix, self.config.shard_depth)
        self.stats.add('shards', len(prefixes))
        return prefixes

    def list_keys(self, prefixes: List[str]) -> List[str]:
        bar = self.progress_factory(total=len(prefixes), desc="Listing shards", unit="shard")
        try:
            keys = list_log_keys(
                self.s3_client, self.config.bucket, prefixes, self.config.threads,
                on_shard_done=lambda ok: bar.update(1),
            )
        finally:
            bar.close()
        self.stats.add('discovered', len(keys))
        return keys

    def _process(self, key: str) -> ProcessOutcome:
        return process_log_object(self.s3_client, self.config.bucket, key, self.config.identity, self.ledger, self.stats)

    def process_keys(self, keys: List[str]):
        bar = self.progress_factory(total=len(keys), desc="Cloudtrail files", unit="file")
        try:
            with ThreadPoolExecutor(max_workers=self.config.threads) as executor:
                futures = [executor.submit(self._process, key) for key in keys]
                for future in as_completed(futures):
                    outcome = future.result()
                    self.stats.add('processed')
                    if outcome is ProcessOutcome.FAILED:
                        self.stats.add('failed')
                    elif outcome is ProcessOutcome.SKIPPED:
                        self.stats.add('skipped')
                    bar.update(1)
        finally:
            bar.close()

    def run(self) -> ScanResult:
        prefixes = self.discover()
        logger.info("Scanning %d shard prefixes under s3://%s/%s", len(prefixes), self.config.bucket, self.config.prefix)

        keys = self.list_keys(prefixes)
        logger.info("Found %d objects", len(keys))

        self.process_keys(keys)

        return ScanResult(
            identity=self.config.identity,
            actions=self.ledger.actions(),
            secrets=self.ledger.secrets(),
            stats=self.stats.as_dict(),
        )
