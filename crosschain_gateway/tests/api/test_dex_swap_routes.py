from unittest import mock

from crosschain_gateway.clients.okx_client import OKXClient

QUOTE_BODY = {
    'action': 'quote',
    'chainId': '501',
    'fromTokenAddress': '11111111111111111111111111111111',
    'toTokenAddress': 'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v',
    'amount': '100000000',
    'slippage': '0.5',
}


def test_dex_swap_health(gateway_app_client):
    response = gateway_app_client.get('/api/dex-swap')
    assert response.status_code == 200
    body = response.json()
    assert body['status'] == 'healthy'
    assert body['service'] == 'DEX Swap API'
    assert body['features'] == ['quote', 'instructions']


def test_dex_swap_docs(gateway_app_client):
    response = gateway_app_client.get('/api/dex-swap', params={'docs': 'true'})
    body = response.json()
    assert body['title'] == 'DEX Swap API'
    actions = body['endpoints']['POST /api/dex-swap']['actions']
    assert sorted(actions) == ['instructions', 'quote']
    assert actions['instructions']['required'][-1] == 'userWalletAddress'


def test_dex_swap_quote(gateway_app_client):
    upstream = b'{"code": "0", "msg": "", "data": [{"toTokenAmount": "15012345"}]}'
    with mock.patch.object(OKXClient, '_send', mock.AsyncMock(return_value=(200, 'OK', upstream))) as send_mock:
        response = gateway_app_client.post('/api/dex-swap', json=QUOTE_BODY)

    assert response.status_code == 200
    body = response.json()
    assert body['success'] is True
    assert body['action'] == 'quote'
    assert body['chainId'] == '501'
    assert body['data'] == [{'toTokenAmount': '15012345'}]
    method, url, headers, _ = send_mock.await_args.args
    assert method == 'GET'
    assert url.path == '/api/v5/dex/aggregator/quote'
    assert url.query['slippage'] == '0.5'
    assert 'userWalletAddress' not in url.query
    assert headers['OK-ACCESS-PASSPHRASE'] == 'test-passphrase'


def test_dex_swap_instructions(gateway_app_client):
    upstream = b'{"code": "0", "data": {"instructionLists": [], "addressLookupTableAccount": []}}'
    with mock.patch.object(OKXClient, '_send', mock.AsyncMock(return_value=(200, 'OK', upstream))) as send_mock:
        response = gateway_app_client.post('/api/dex-swap', json={
            **QUOTE_BODY, 'action': 'instructions', 'userWalletAddress': 'SolWallet111',
        })

    assert response.status_code == 200
    assert response.json()['data'] == {'instructionLists': [], 'addressLookupTableAccount': []}
    _, url, _, _ = send_mock.await_args.args
    assert url.path == '/api/v5/dex/aggregator/swap-instruction'
    assert url.query['userWalletAddress'] == 'SolWallet111'
    assert url.query['pathNum'] == '3'


def test_dex_swap_execute_is_rejected(gateway_app_client):
    response = gateway_app_client.post('/api/dex-swap', json={**QUOTE_BODY, 'action': 'execute'})
    assert response.status_code == 400
    assert response.json() == {
        'error': 'Invalid action',
        'details': 'Action must be one of: quote, instructions',
    }


def test_dex_swap_invalid_slippage(gateway_app_client):
    response = gateway_app_client.post('/api/dex-swap', json={**QUOTE_BODY, 'slippage': '150'})
    assert response.status_code == 400
    assert response.json() == {'error': 'Slippage must be between 0 and 100'}


def test_dex_swap_upstream_error(gateway_app_client):
    send_mock = mock.AsyncMock(return_value=(500, 'Internal Server Error', b''))
    with mock.patch.object(OKXClient, '_send', send_mock):
        response = gateway_app_client.post('/api/dex-swap', json=QUOTE_BODY)
    assert response.status_code == 502
    assert response.json()['details'] == 'OKX API Error: 500 Internal Server Error'
