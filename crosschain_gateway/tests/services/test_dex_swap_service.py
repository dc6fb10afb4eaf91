from unittest import mock

import pytest

from crosschain_gateway.services.dex_swap_service import (
    QUOTE_PATH,
    SWAP_INSTRUCTION_PATH,
    validate_swap_params,
)
from crosschain_gateway.utils.errors import (
    CredentialsNotConfiguredError,
    CrossChainValidationError,
)

QUOTE_PARAMS = {
    'chainId': '501',
    'fromTokenAddress': '11111111111111111111111111111111',
    'toTokenAddress': 'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v',
    'amount': '100000000',
    'slippage': '0.5',
}
UPSTREAM = {'code': '0', 'msg': '', 'data': [{'toTokenAmount': '15012345'}]}


@pytest.mark.parametrize('override, require_wallet, message', [
    ({'chainId': ''}, False, 'Missing required parameter: chainId'),
    ({'slippage': None}, False, 'Missing required parameter: slippage'),
    ({}, True, 'Missing required parameter: userWalletAddress'),
    ({'chainId': 'solana'}, False, 'Invalid chainId format. Must be a numeric string.'),
    ({'amount': '1e8'}, False, 'Invalid amount format. Must be a numeric string.'),
    ({'slippage': '-1'}, False, 'Invalid slippage format. Must be a numeric string.'),
    ({'slippage': '100.5'}, False, 'Slippage must be between 0 and 100'),
])
def test_validate_swap_params(override, require_wallet, message):
    assert validate_swap_params({**QUOTE_PARAMS, **override}, require_wallet) == message


def test_validate_swap_params_accepts_bounds():
    assert validate_swap_params(QUOTE_PARAMS) is None
    assert validate_swap_params({**QUOTE_PARAMS, 'slippage': '0'}) is None
    assert validate_swap_params({**QUOTE_PARAMS, 'slippage': '100', 'amount': '0.25'}) is None
    assert validate_swap_params({**QUOTE_PARAMS, 'userWalletAddress': 'SolWallet111'}, True) is None


async def test_quote(dex_swap_service):
    with mock.patch.object(
        dex_swap_service.okx_client, 'get', mock.AsyncMock(return_value=UPSTREAM)
    ) as get_mock:
        result = await dex_swap_service.swap('quote', QUOTE_PARAMS)

    path, query = get_mock.await_args.args
    assert path == QUOTE_PATH
    assert query == [
        ('chainId', '501'),
        ('fromTokenAddress', '11111111111111111111111111111111'),
        ('toTokenAddress', 'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v'),
        ('amount', '100000000'),
        ('slippage', '0.5'),
    ]
    assert result['success'] is True
    assert result['action'] == 'quote'
    assert result['chainId'] == '501'
    assert result['data'] == UPSTREAM['data']
    assert 'timestamp' in result


async def test_quote_passes_wallet_when_given(dex_swap_service):
    with mock.patch.object(
        dex_swap_service.okx_client, 'get', mock.AsyncMock(return_value=UPSTREAM)
    ) as get_mock:
        await dex_swap_service.swap('quote', {**QUOTE_PARAMS, 'userWalletAddress': 'SolWallet111'})

    _, query = get_mock.await_args.args
    assert query[-1] == ('userWalletAddress', 'SolWallet111')


async def test_instructions_fill_defaults(dex_swap_service):
    params = {**QUOTE_PARAMS, 'userWalletAddress': 'SolWallet111', 'pathNum': '5'}
    with mock.patch.object(
        dex_swap_service.okx_client, 'get', mock.AsyncMock(return_value=UPSTREAM)
    ) as get_mock:
        result = await dex_swap_service.swap('instructions', params)

    path, query = get_mock.await_args.args
    assert path == SWAP_INSTRUCTION_PATH
    assert dict(query) == {
        **QUOTE_PARAMS,
        'userWalletAddress': 'SolWallet111',
        'feePercent': '1',
        'priceTolerance': '0',
        'autoSlippage': 'false',
        'pathNum': '5',
    }
    assert result['action'] == 'instructions'


async def test_instructions_require_wallet(dex_swap_service):
    with mock.patch.object(dex_swap_service.okx_client, 'get', mock.AsyncMock()) as get_mock:
        with pytest.raises(CrossChainValidationError) as exc_info:
            await dex_swap_service.swap('instructions', QUOTE_PARAMS)
    assert exc_info.value.message == 'Missing required parameter: userWalletAddress'
    get_mock.assert_not_awaited()


@pytest.mark.parametrize('action', [None, 'execute', 'build-tx'])
async def test_unsupported_action(dex_swap_service, action):
    with pytest.raises(CrossChainValidationError) as exc_info:
        await dex_swap_service.swap(action, QUOTE_PARAMS)
    assert exc_info.value.message == 'Invalid action'
    assert exc_info.value.details == 'Action must be one of: quote, instructions'


async def test_credentials_checked_before_action(dex_swap_service, config):
    config.PASSPHRASE = ''
    with pytest.raises(CredentialsNotConfiguredError):
        await dex_swap_service.swap('execute', {})
