"""Download, decompress and reduce a single CloudTrail log file."""
import enum
import gzip
import json
import logging
import zlib

from botocore.exceptions import BotoCoreError, ClientError

from .arn import normalize_arn
from .records import get_str_param, is_log_key, is_secret_retrieval, operation_key, parse_record, SECRET_ID_PARAM
from .results import ResultLedger

logger = logging.getLogger(__name__)


class ProcessOutcome(enum.Enum):
    OK = 'ok'
    SKIPPED = 'skipped'
    FAILED = 'failed'


def fetch_log_object(s3_client, bucket: str, key: str) -> bytes:
    response = s3_client.get_object(Bucket=bucket, Key=key)
    body = response['Body']
    try:
        return body.read()
    finally:
        body.close()


def load_records(payload: bytes) -> list:
    """Decompress a trail file and return its ``Records`` array.

    Raises ValueError if the payload is not a gzipped JSON object with a
    ``Records`` list.
    """
    try:
        raw = gzip.decompress(payload)
    except (OSError, EOFError, zlib.error) as e:
        raise ValueError(f"not a gzip stream: {e}") from e

    try:
        data = json.loads(raw)
    except RecursionError as e:
        raise ValueError("JSON nested too deeply") from e
    if not isinstance(data, dict) or not isinstance(data.get('Records'), list):
        raise ValueError("no Records array")
    return data['Records']


def reduce_records(records: list, identity: str, ledger: ResultLedger) -> int:
    """Feed parsed records into the ledger. Returns the number of target actions seen."""
    matched = 0
    for raw in records:
        record = parse_record(raw)
        if record is None:
            continue

        if is_secret_retrieval(record):
            secret_id = get_str_param(record.request_parameters, SECRET_ID_PARAM)
            if secret_id is not None:
                ledger.record_secret(secret_id)

        if not record.succeeded or normalize_arn(record.arn) != identity:
            continue

        ledger.record_action(operation_key(record.event_source, record.event_name), record.event_time)
        matched += 1

    return matched


def process_log_object(s3_client, bucket: str, key: str, identity: str, ledger: ResultLedger, stats=None) -> ProcessOutcome:
    """Download and process one log file.

    Failures never propagate: an object that cannot be fetched, decompressed
    or parsed simply contributes nothing.
    """
    if not is_log_key(key):
        return ProcessOutcome.SKIPPED

    try:
        payload = fetch_log_object(s3_client, bucket, key)
    except (ClientError, BotoCoreError) as e:
        logger.debug("Could not fetch s3://%s/%s: %s", bucket, key, e)
        return ProcessOutcome.FAILED

    try:
        records = load_records(payload)
    except ValueError as e:
        logger.debug("Could not parse s3://%s/%s: %s", bucket, key, e)
        return ProcessOutcome.FAILED

    matched = reduce_records(records, identity, ledger)
    if stats is not None and matched:
        stats.add('matched', matched)
    return ProcessOutcome.OK
