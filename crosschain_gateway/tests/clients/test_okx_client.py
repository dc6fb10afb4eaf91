import base64
import hashlib
import hmac
from unittest import mock

import aiohttp
import pytest
from yarl import URL

from crosschain_gateway.utils.errors import (
    CredentialsNotConfiguredError,
    ParseResponseError,
    UpstreamAPIError,
    UpstreamNetworkError,
)

TIMESTAMP = '2025-01-01T00:00:00.000Z'
BRIDGES_PATH = '/api/v5/dex/cross-chain/supported/bridges'


def expected_signature(message: str) -> str:
    digest = hmac.new(b'test-secret-key', message.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def test_sign(okx_client):
    headers = okx_client.sign(TIMESTAMP, 'GET', BRIDGES_PATH, '?chainIndex=501')
    assert headers == {
        'Content-Type': 'application/json',
        'OK-ACCESS-KEY': 'test-api-key',
        'OK-ACCESS-SIGN': expected_signature(TIMESTAMP + 'GET' + BRIDGES_PATH + '?chainIndex=501'),
        'OK-ACCESS-TIMESTAMP': TIMESTAMP,
        'OK-ACCESS-PASSPHRASE': 'test-passphrase',
    }


def test_build_query_string(okx_client):
    assert okx_client.build_query_string(None) == ''
    assert okx_client.build_query_string({}) == ''
    assert okx_client.build_query_string([('b', '2'), ('a', '[1,2]')]) == '?b=2&a=%5B1%2C2%5D'


@mock.patch('crosschain_gateway.clients.okx_client.iso_timestamp', return_value=TIMESTAMP)
async def test_get_signs_path_and_query(_, okx_client):
    send_mock = mock.AsyncMock(return_value=(200, 'OK', b'{"code": "0", "data": []}'))
    with mock.patch.object(okx_client, '_send', send_mock):
        result = await okx_client.get(BRIDGES_PATH, {'chainIndex': '501'})

    assert result == {'code': '0', 'data': []}
    method, url, headers, body = send_mock.await_args.args
    assert method == 'GET'
    assert url == URL('https://web3.okx.com' + BRIDGES_PATH + '?chainIndex=501', encoded=True)
    assert body == ''
    assert headers['OK-ACCESS-SIGN'] == expected_signature(
        TIMESTAMP + 'GET' + BRIDGES_PATH + '?chainIndex=501'
    )


@mock.patch('crosschain_gateway.clients.okx_client.iso_timestamp', return_value=TIMESTAMP)
async def test_post_signs_body(_, okx_client):
    send_mock = mock.AsyncMock(return_value=(200, 'OK', b'{"code": "0"}'))
    path = '/api/v5/dex/market/price'
    with mock.patch.object(okx_client, '_send', send_mock):
        await okx_client.post(path, [{'chainIndex': '501'}])

    method, _, headers, body = send_mock.await_args.args
    assert method == 'POST'
    assert body == '[{"chainIndex":"501"}]'
    assert headers['OK-ACCESS-SIGN'] == expected_signature(TIMESTAMP + 'POST' + path + body)


async def test_missing_credentials(okx_client, config):
    config.PASSPHRASE = None
    send_mock = mock.AsyncMock()
    with mock.patch.object(okx_client, '_send', send_mock):
        with pytest.raises(CredentialsNotConfiguredError) as exc_info:
            await okx_client.get(BRIDGES_PATH)
    assert exc_info.value.message == 'Please set API_KEY, SECRET_KEY, and PASSPHRASE environment variables'
    send_mock.assert_not_awaited()


async def test_upstream_error_status(okx_client, caplog):
    send_mock = mock.AsyncMock(return_value=(429, 'Too Many Requests', b''))
    with mock.patch.object(okx_client, '_send', send_mock):
        with pytest.raises(UpstreamAPIError) as exc_info:
            await okx_client.get(BRIDGES_PATH)

    assert exc_info.value.message == 'OKX API Error: 429 Too Many Requests'
    assert exc_info.value.status == 429
    assert exc_info.value.code == 502
    assert 'external api error. Source: okx' in caplog.text


async def test_network_error(okx_client):
    send_mock = mock.AsyncMock(side_effect=aiohttp.ClientConnectionError('connection refused'))
    with mock.patch.object(okx_client, '_send', send_mock):
        with pytest.raises(UpstreamNetworkError) as exc_info:
            await okx_client.get(BRIDGES_PATH)
    assert exc_info.value.message == 'Failed to connect to OKX API'
    assert exc_info.value.code == 503


async def test_unparsable_body(okx_client):
    send_mock = mock.AsyncMock(return_value=(200, 'OK', b'<html>'))
    with mock.patch.object(okx_client, '_send', send_mock):
        with pytest.raises(ParseResponseError) as exc_info:
            await okx_client.get(BRIDGES_PATH)
    assert exc_info.value.code == 500
