import pytest

SOL_ADDRESS = 'So11111111111111111111111111111111111111112'
ETH_USDC_ADDRESS = '0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48'


@pytest.fixture()
def bridges_response():
    return {
        'success': True,
        'bridges': [
            {
                'bridgeId': 211,
                'bridgeName': 'Wormhole',
                'requireOtherNativeFee': False,
                'supportedChains': ['501', '1', '56'],
                'supportsSolana': True,
            },
            {
                'bridgeId': 235,
                'bridgeName': 'Stargate',
                'requireOtherNativeFee': True,
                'supportedChains': ['1', '56', '137'],
                'supportsSolana': False,
            },
        ],
    }


@pytest.fixture()
def pairs_response():
    return {
        'success': True,
        'pairs': [
            {
                'fromChainIndex': '501',
                'toChainIndex': '1',
                'fromTokenSymbol': 'SOL',
                'toTokenSymbol': 'USDC',
                'fromTokenAddress': SOL_ADDRESS,
                'toTokenAddress': ETH_USDC_ADDRESS,
                'pairId': '501-1-SOL-USDC',
            },
            {
                'fromChainIndex': '501',
                'toChainIndex': '1',
                'fromTokenSymbol': 'USDC',
                'toTokenSymbol': 'USDC',
                'pairId': '501-1-USDC-USDC',
            },
            {
                'fromChainIndex': '501',
                'toChainIndex': '56',
                'fromTokenSymbol': 'SOL',
                'toTokenSymbol': 'BNB',
                'pairId': '501-56-SOL-BNB',
            },
        ],
    }


def tokens_for_chain(chain_index: str) -> dict:
    tokens = {
        '501': [
            {'symbol': 'BONK', 'name': 'Bonk', 'address': 'DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263',
             'decimals': 5, 'chainIndex': '501'},
            {'symbol': 'SOL', 'name': 'Solana', 'address': SOL_ADDRESS, 'decimals': 9, 'chainIndex': '501'},
        ],
        '1': [
            {'symbol': 'WETH', 'name': 'Wrapped Ether', 'address': '0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2',
             'decimals': 18, 'chainIndex': '1'},
            {'symbol': 'USDC', 'name': 'USD Coin', 'address': ETH_USDC_ADDRESS, 'decimals': 6, 'chainIndex': '1'},
        ],
    }.get(chain_index, [
        {'symbol': 'USDT', 'name': 'Tether', 'address': f'0xusdt{chain_index}', 'decimals': 6,
         'chainIndex': chain_index},
    ])
    return {'success': True, 'tokens': tokens}
