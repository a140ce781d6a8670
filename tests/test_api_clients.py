"""Tests for the Arvancloud API clients.

``urllib.request.urlopen`` is monkeypatched for the CDN client and the
object storage client is driven through ``botocore.stub.Stubber``.
"""
from __future__ import annotations

import io
import json
import urllib.error
from typing import Any, List

import pytest
from botocore.exceptions import ClientError
from botocore.stub import Stubber

from api.arvancloud.cdn import ArvancloudAPIError, CDNClient
from api.arvancloud.object_storage import ObjectStorageClient


class _FakeResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def _install_urlopen(monkeypatch: pytest.MonkeyPatch, bodies: List[Any]) -> List[Any]:
    """Serve ``bodies`` in order; exceptions are raised instead of returned."""
    calls = []

    def fake_urlopen(request, timeout=None):
        calls.append((request, timeout))
        body = bodies.pop(0)
        if isinstance(body, Exception):
            raise body
        if not isinstance(body, str):
            body = json.dumps(body)
        return _FakeResponse(body.encode('utf-8'))

    monkeypatch.setattr('api.arvancloud.cdn.urllib.request.urlopen', fake_urlopen)
    return calls


def test_list_domains_follows_pages(monkeypatch):
    calls = _install_urlopen(monkeypatch, [
        {'data': [{'name': 'a.ir'}], 'meta': {'current_page': 1, 'last_page': 2}},
        {'data': [{'name': 'b.ir'}], 'meta': {'current_page': 2, 'last_page': 2}},
    ])

    domains = CDNClient('Apikey abc', timeout=2.0, base_url='https://api.test/cdn/4.0/').list_domains()

    assert [d['name'] for d in domains] == ['a.ir', 'b.ir']
    request, timeout = calls[0]
    assert timeout == 2.0
    assert request.get_header('Authorization') == 'Apikey abc'
    assert request.full_url.startswith('https://api.test/cdn/4.0/domains?')
    assert 'page=2' in calls[1][0].full_url


def test_list_domains_without_meta(monkeypatch):
    _install_urlopen(monkeypatch, [{'data': [{'name': 'a.ir'}]}])
    assert len(CDNClient('t').list_domains()) == 1


def test_traffic_report(monkeypatch):
    calls = _install_urlopen(monkeypatch, [{
        'data': {'statistics': {
            'traffics': {'total': 2048, 'saved': 1024},
            'requests': {'total': 10, 'saved': 4},
        }},
    }])

    report = CDNClient('t').get_traffic_report('example.ir', period='24h')

    assert report == {'traffic': 2048.0, 'traffic_saved': 1024.0, 'requests': 10.0, 'requests_saved': 4.0}
    assert '/domains/example.ir/reports/traffics?period=24h' in calls[0][0].full_url


def test_traffic_report_missing_statistics(monkeypatch):
    _install_urlopen(monkeypatch, [{'data': {}}])
    report = CDNClient('t').get_traffic_report('example.ir')
    assert report['traffic'] == 0.0


def test_http_error(monkeypatch):
    error = urllib.error.HTTPError('https://api.test', 401, 'Unauthorized', {}, None)
    _install_urlopen(monkeypatch, [error])

    with pytest.raises(ArvancloudAPIError) as excinfo:
        CDNClient('bad').list_domains()
    assert excinfo.value.status == 401


def test_network_error(monkeypatch):
    _install_urlopen(monkeypatch, [urllib.error.URLError('timed out')])
    with pytest.raises(ArvancloudAPIError):
        CDNClient('t').list_domains()


@pytest.mark.parametrize('body', [
    'not json',
    '[1, 2]',
    '{"data": "oops"}',
    '{"data": [], "meta": "oops"}',
    '{"data": [], "meta": {"last_page": "2"}}',
    '{"data": [], "meta": {"last_page": true}}',
])
def test_malformed_response(monkeypatch, body):
    _install_urlopen(monkeypatch, [body])
    with pytest.raises(ArvancloudAPIError):
        CDNClient('t').list_domains()


@pytest.mark.parametrize('body', [
    '{"data": "oops"}',
    '{"data": {"statistics": [1]}}',
    '{"data": {"statistics": {"traffics": "x"}}}',
    '{"data": {"statistics": {"requests": [1]}}}',
    '{"data": {"statistics": {"traffics": {"total": "many"}}}}',
])
def test_malformed_traffic_report(monkeypatch, body):
    _install_urlopen(monkeypatch, [body])
    with pytest.raises(ArvancloudAPIError):
        CDNClient('t').get_traffic_report('example.ir')


def _storage_client():
    return ObjectStorageClient('https://s3.test', 'ir-thr-at1', 'ak', 'sk', timeout=1.0)


def test_list_buckets():
    client = _storage_client()
    with Stubber(client.client) as stubber:
        stubber.add_response('list_buckets', {'Buckets': [{'Name': 'logs'}, {'Name': 'media'}]})
        assert client.list_buckets() == ['logs', 'media']


def test_bucket_usage_sums_all_pages():
    client = _storage_client()
    with Stubber(client.client) as stubber:
        stubber.add_response(
            'list_objects_v2',
            {
                'Contents': [{'Key': 'a', 'Size': 10}, {'Key': 'b', 'Size': 20}],
                'IsTruncated': True,
                'NextContinuationToken': 'next',
            },
        )
        stubber.add_response(
            'list_objects_v2',
            {'Contents': [{'Key': 'c', 'Size': 5}], 'IsTruncated': False},
        )
        assert client.get_bucket_usage('logs') == (3, 35)


def test_empty_bucket():
    client = _storage_client()
    with Stubber(client.client) as stubber:
        stubber.add_response('list_objects_v2', {'IsTruncated': False})
        assert client.get_bucket_usage('empty') == (0, 0)


def test_list_buckets_access_denied():
    client = _storage_client()
    with Stubber(client.client) as stubber:
        stubber.add_client_error('list_buckets', service_error_code='AccessDenied', http_status_code=403)
        with pytest.raises(ClientError):
            client.list_buckets()
