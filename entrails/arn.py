"""Principal ARN normalization."""

ASSUMED_ROLE = 'assumed-role/'


def _fix_resource(resource: str) -> str:
    if resource.startswith(ASSUMED_ROLE):
        # assumed-role/<name>/<session> -> role/<name>
        return 'role/' + resource[len(ASSUMED_ROLE):].split("/")[0]
    return resource


def normalize_arn(arn: str) -> str:
    """Turn any principal ARN into the IAM ARN of the identity behind it.

    ``arn:aws:sts::123:assumed-role/Admin/session`` and
    ``arn:aws:iam::123:role/Admin`` both become ``arn:aws:iam::123:role/Admin``.
    Users and roles keep their full path. Input that is not a well formed ARN
    is rewritten with the same textual rules and never raises.
    """
    if not arn:
        return ''

    parts = arn.split(':', 5)
    if len(parts) == 6 and parts[0] == 'arn':
        if parts[2] == 'sts':
            parts[2] = 'iam'
        parts[5] = _fix_resource(parts[5])
        return ':'.join(parts)

    arn = arn.replace(':sts:', ':iam:', 1)
    head, sep, resource = arn.partition(':' + ASSUMED_ROLE)
    if sep:
        return head + ':' + _fix_resource(ASSUMED_ROLE + resource)
    return arn
