"""CloudTrail record accessors.

Records come straight out of ``json.loads`` so nothing about their shape can
be trusted. Everything here returns ``None`` instead of raising when a field
has the wrong type.
"""
from typing import Any, Dict, NamedTuple, Optional

SECRETS_SERVICE = 'secretsmanager'
SECRET_RETRIEVAL_EVENT = 'GetSecretValue'
SECRET_ID_PARAM = 'secretId'


class LogRecord(NamedTuple):
    event_time: str
    event_source: str
    event_name: str
    error_code: Optional[str]
    arn: str
    request_parameters: Dict[str, Any]

    @property
    def succeeded(self) -> bool:
        return self.error_code is None


def _str_field(raw: Dict[str, Any], name: str) -> Optional[str]:
    value = raw.get(name)
    if value is None:
        return ''
    if not isinstance(value, str):
        return None
    return value


def parse_record(raw: Any) -> Optional[LogRecord]:
    """Build a LogRecord from one element of a ``Records`` array.

    Missing fields default to empty values. A field present with the wrong
    JSON type makes the whole record unusable and ``None`` is returned.
    """
    if not isinstance(raw, dict):
        return None

    event_time = _str_field(raw, 'eventTime')
    event_source = _str_field(raw, 'eventSource')
    event_name = _str_field(raw, 'eventName')
    if event_time is None or event_source is None or event_name is None:
        return None

    error_code = raw.get('errorCode')
    if error_code is not None and not isinstance(error_code, str):
        return None

    user_identity = raw.get('userIdentity') or {}
    if not isinstance(user_identity, dict):
        return None
    arn = _str_field(user_identity, 'arn')
    if arn is None:
        return None

    params = raw.get('requestParameters') or {}
    if not isinstance(params, dict):
        return None

    return LogRecord(event_time, event_source, event_name, error_code, arn, params)


def operation_key(event_source: str, event_name: str) -> str:
    """``ec2.amazonaws.com`` + ``DescribeInstances`` -> ``ec2:DescribeInstances``"""
    return event_source.split(".")[0] + ":" + event_name


def get_str_param(params: Dict[str, Any], name: str) -> Optional[str]:
    value = params.get(name)
    if isinstance(value, str):
        return value
    return None


def is_secret_retrieval(record: LogRecord) -> bool:
    return SECRETS_SERVICE in record.event_source and record.event_name == SECRET_RETRIEVAL_EVENT


def is_log_key(key: str) -> bool:
    """Only gzipped trail files carry records; digest files are skipped."""
    return ".json.gz" in key and "digest" not in key.lower()
