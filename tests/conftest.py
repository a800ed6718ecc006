"""Shared fixtures: an in-memory S3 client and CloudTrail file builders."""
import gzip
import io
import json

import pytest
from botocore.exceptions import ClientError

TARGET = 'arn:aws:iam::111111111111:role/Target'
TARGET_SESSION = 'arn:aws:sts::111111111111:assumed-role/Target/session-1'
OTHER = 'arn:aws:iam::111111111111:user/alice'


def client_error(operation, code='AccessDenied'):
    return ClientError({'Error': {'Code': code, 'Message': code}}, operation)


def make_event(arn=TARGET_SESSION, source='ec2.amazonaws.com', name='DescribeInstances',
               time='2024-01-15T10:00:00Z', error=None, params=None):
    event = {
        'eventTime': time,
        'eventSource': source,
        'eventName': name,
        'userIdentity': {'type': 'AssumedRole', 'arn': arn},
        'requestParameters': params,
    }
    if error is not None:
        event['errorCode'] = error
    return event


def make_log(records):
    return gzip.compress(json.dumps({'Records': records}).encode('utf-8'))


class _Paginator:
    def __init__(self, s3):
        self.s3 = s3

    def paginate(self, Bucket, Prefix='', Delimiter=None, **kwargs):
        if Bucket != self.s3.bucket:
            raise client_error('ListObjectsV2', 'NoSuchBucket')

        entries = []
        seen = set()
        for key in sorted(self.s3.objects):
            if not key.startswith(Prefix):
                continue
            rest = key[len(Prefix):]
            if Delimiter and Delimiter in rest:
                common = Prefix + rest.split(Delimiter)[0] + Delimiter
                if common not in seen:
                    seen.add(common)
                    entries.append(('prefix', common))
            else:
                entries.append(('key', key))

        pages_before_error = self.s3.list_errors.get(Prefix)
        size = self.s3.page_size
        chunks = [entries[i:i + size] for i in range(0, len(entries), size)] or [[]]
        for number, chunk in enumerate(chunks):
            if pages_before_error is not None and number >= pages_before_error:
                raise client_error('ListObjectsV2')
            page = {'KeyCount': len(chunk)}
            contents = [{'Key': value} for kind, value in chunk if kind == 'key']
            prefixes = [{'Prefix': value} for kind, value in chunk if kind == 'prefix']
            if contents:
                page['Contents'] = contents
            if prefixes:
                page['CommonPrefixes'] = prefixes
            yield page


class FakeS3:
    """Just enough of the boto3 S3 client for listing and fetching."""

    def __init__(self, bucket='trail-bucket', objects=None, page_size=2):
        self.bucket = bucket
        self.objects = dict(objects or {})
        self.page_size = page_size
        # prefix -> number of pages served before the listing fails
        self.list_errors = {}
        self.get_errors = set()
        self.fetched = []

    def get_paginator(self, name):
        assert name == 'list_objects_v2'
        return _Paginator(self)

    def get_object(self, Bucket, Key):
        self.fetched.append(Key)
        if Key in self.get_errors or Bucket != self.bucket:
            raise client_error('GetObject')
        if Key not in self.objects:
            raise client_error('GetObject', 'NoSuchKey')
        return {'Body': io.BytesIO(self.objects[Key])}


@pytest.fixture
def s3():
    return FakeS3()


@pytest.fixture
def trail_bucket():
    """A bucket laid out the way CloudTrail writes it."""
    base = 'AWSLogs/111111111111/CloudTrail/'
    objects = {
        base + 'us-east-1/2024/01/15/a.json.gz': make_log([
            make_event(time='2024-01-15T10:00:00Z'),
            make_event(name='GetCallerIdentity', source='sts.amazonaws.com', time='2024-01-15T09:00:00Z'),
        ]),
        base + 'us-east-1/2024/01/16/b.json.gz': make_log([
            make_event(time='2024-01-16T08:00:00Z'),
            make_event(arn=OTHER, source='s3.amazonaws.com', name='ListBuckets'),
        ]),
        base + 'eu-west-1/2024/01/15/c.json.gz': make_log([
            make_event(source='iam.amazonaws.com', name='ListRoles', time='2024-01-15T12:00:00Z', error='AccessDenied'),
            make_event(arn=OTHER, source='secretsmanager.amazonaws.com', name='GetSecretValue',
                       params={'secretId': 'prod/db'}),
        ]),
        base + 'eu-west-1/2023/12/31/d.json.gz': make_log([
            make_event(source='lambda.amazonaws.com', name='ListFunctions20150331', time='2023-12-31T23:59:59Z'),
        ]),
        'AWSLogs/111111111111/CloudTrail-Digest/us-east-1/2024/01/15/digest.json.gz': make_log([]),
    }
    return FakeS3(objects=objects, page_size=2)
