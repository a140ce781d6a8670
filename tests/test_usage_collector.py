"""Tests for the CDN and Object Storage collectors.

The upstream clients are replaced through the ``client_factory`` hook, so
the tests never open a network connection.
"""
from __future__ import annotations

from typing import Dict, List, Tuple

import pytest

from api.arvancloud.cdn import ArvancloudAPIError
from collector import CollectorContext, MetricSink
from config.loader import ObjectStorageConfig
from provider.arvancloud.usage_collector import CDNUsageCollector, ObjectStorageUsageCollector


class _FakeCDNClient:
    instances: List["_FakeCDNClient"] = []

    def __init__(self, token: str, timeout: float) -> None:
        self.token = token
        self.timeout = timeout
        self.reports: List[Tuple[str, str]] = []
        _FakeCDNClient.instances.append(self)

    def list_domains(self):
        return [
            {'name': 'example.ir', 'status': 'active'},
            {'name': 'shop.ir', 'status': 'pending'},
            {'status': 'broken'},
        ]

    def get_traffic_report(self, domain, period):
        self.reports.append((domain, period))
        if domain == 'shop.ir':
            return {'traffic': 10, 'traffic_saved': 2, 'requests': 5, 'requests_saved': 1}
        return {'traffic': 1000, 'traffic_saved': 600, 'requests': 50, 'requests_saved': 30}


class _FailingCDNClient(_FakeCDNClient):
    def get_traffic_report(self, domain, period):
        raise ArvancloudAPIError('HTTP 401 Unauthorized', status=401)


class _FakeStorageClient:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.usage: Dict[str, Tuple[int, int]] = {'logs': (3, 300), 'media': (0, 0)}

    def list_buckets(self):
        return list(self.usage)

    def get_bucket_usage(self, bucket):
        return self.usage[bucket]


def _samples(sink: MetricSink):
    return {
        (s.name, tuple(sorted(s.labels.items()))): s.value
        for f in sink.families() for s in f.samples
    }


@pytest.fixture(autouse=True)
def _reset_fake_clients():
    _FakeCDNClient.instances = []


def test_cdn_collect():
    co = CDNUsageCollector(client_factory=_FakeCDNClient, period='24h')
    ctx = CollectorContext(sink=MetricSink(), token='Apikey abc', timeout=3.0)

    co.collect(ctx)

    client = _FakeCDNClient.instances[0]
    assert (client.token, client.timeout) == ('Apikey abc', 3.0)
    assert client.reports == [('example.ir', '24h'), ('shop.ir', '24h')]

    samples = _samples(ctx.sink)
    assert samples[('arvancloud_cdn_domain_info', (('domain', 'example.ir'), ('status', 'active')))] == 1.0
    assert samples[('arvancloud_cdn_traffic_bytes', (('domain', 'example.ir'),))] == 1000.0
    assert samples[('arvancloud_cdn_traffic_saved_bytes', (('domain', 'shop.ir'),))] == 2.0
    assert samples[('arvancloud_cdn_requests', (('domain', 'shop.ir'),))] == 5.0
    assert samples[('arvancloud_cdn_requests_saved', (('domain', 'example.ir'),))] == 30.0


def test_cdn_samples_match_descriptors():
    co = CDNUsageCollector(client_factory=_FakeCDNClient)
    ctx = CollectorContext(sink=MetricSink(), token='t')
    co.collect(ctx)

    declared = {d.name for d in co.describe()}
    assert {f.name for f in ctx.sink.families()} <= declared


def test_cdn_failure_keeps_written_samples():
    co = CDNUsageCollector(client_factory=_FailingCDNClient)
    ctx = CollectorContext(sink=MetricSink(), token='t')

    with pytest.raises(ArvancloudAPIError):
        co.collect(ctx)

    assert [f.name for f in ctx.sink.families()] == ['arvancloud_cdn_domain_info']


def test_cdn_describe_is_stable():
    co = CDNUsageCollector(client_factory=_FakeCDNClient)
    assert co.describe() == co.describe()
    assert _FakeCDNClient.instances == []


def test_object_storage_collect():
    storage = ObjectStorageConfig(access_key='ak', secret_key='sk')
    created = []

    def factory(**kwargs):
        client = _FakeStorageClient(**kwargs)
        created.append(client)
        return client

    co = ObjectStorageUsageCollector(storage, client_factory=factory)
    ctx = CollectorContext(sink=MetricSink(), token='unused', timeout=7.0)
    co.collect(ctx)

    assert created[0].kwargs == {
        'endpoint': storage.endpoint,
        'region': storage.region,
        'access_key': 'ak',
        'secret_key': 'sk',
        'timeout': 7.0,
    }
    samples = _samples(ctx.sink)
    assert samples[('arvancloud_object_storage_buckets', ())] == 2.0
    assert samples[('arvancloud_object_storage_bucket_objects', (('bucket', 'logs'),))] == 3.0
    assert samples[('arvancloud_object_storage_bucket_size_bytes', (('bucket', 'logs'),))] == 300.0
    assert samples[('arvancloud_object_storage_bucket_size_bytes', (('bucket', 'media'),))] == 0.0


def test_collector_types():
    assert CDNUsageCollector().get_collector_type() == 'cdn'
    assert ObjectStorageUsageCollector(ObjectStorageConfig()).get_collector_type() == 'object_storage'
