import asyncio
from unittest import mock

import pytest

from crosschain_gateway.models.crosschain_models import Token, TokenPair
from crosschain_gateway.services.data_loader import DataLoader, LoadingStep, pick_default_token
from crosschain_gateway.tests.fixtures.reference_data import tokens_for_chain
from crosschain_gateway.utils.errors import RateLimitExceededError


class FakeQueue:
    """Answers queue requests from a url -> response mapping."""

    def __init__(self, gateway, bridges, pairs, overrides=None):
        self.gateway = gateway
        self.bridges = bridges
        self.pairs = pairs
        self.overrides = overrides or {}
        self.calls = []

    async def enqueue(self, url, name, initial_delay=5.0):
        self.calls.append((url, name))
        await asyncio.sleep(0)
        if url in self.overrides:
            answer = self.overrides[url]
            if isinstance(answer, Exception):
                raise answer
            return answer
        if url == self.gateway.bridges_url():
            return self.bridges
        if url == self.gateway.pairs_url():
            return self.pairs
        chain_index = url.split('chainIndex=')[1].split('&')[0]
        return tokens_for_chain(chain_index)


@pytest.fixture()
def fake_queue(gateway_client, bridges_response, pairs_response):
    return FakeQueue(gateway_client, bridges_response, pairs_response)


@pytest.fixture()
def loader(fake_queue, gateway_client, chains, config):
    return DataLoader(queue=fake_queue, gateway=gateway_client, chains=chains, config=config)


async def test_load_all_data_runs_steps_in_order(loader, fake_queue):
    await loader.load_all_data()

    assert [name for _, name in fake_queue.calls] == [
        'Loading bridges',
        'Loading token pairs',
        'Loading Solana tokens',
        'Loading Ethereum tokens',
    ]
    assert loader.step == LoadingStep.DONE
    assert loader.progress.progress == 100
    assert loader.error is None
    assert len(loader.bridges) == 2
    assert len(loader.pairs) == 3
    assert loader.from_token.symbol == 'SOL'
    assert loader.to_token.symbol == 'USDC'
    assert loader.pair_validation.is_valid
    assert loader.pair_validation.message == 'Supported pair with 1 available bridge(s)'
    assert loader.request_count == 4


async def test_failed_step_stops_pipeline(loader, fake_queue, gateway_client):
    fake_queue.overrides[gateway_client.pairs_url()] = {'success': False, 'error': 'HTTP 500: boom'}

    await loader.load_all_data()

    assert len(fake_queue.calls) == 2
    assert loader.step == LoadingStep.FAILED
    assert loader.error == 'Failed to load data: HTTP 500: boom'
    assert not loader.is_loading
    assert loader.from_tokens == []


async def test_response_without_payload_fails_with_step_name(loader, fake_queue, gateway_client):
    fake_queue.overrides[gateway_client.bridges_url()] = {'success': True}

    await loader.load_all_data()

    assert loader.error == 'Failed to load data: Failed to fetch Loading bridges'


async def test_token_failure_keeps_loaded_from_tokens(loader, fake_queue, gateway_client):
    fake_queue.overrides[gateway_client.tokens_url('1')] = {'success': False, 'error': 'HTTP 502: Bad Gateway'}

    await loader.load_all_data()

    assert loader.step == LoadingStep.FAILED
    assert loader.error == 'Failed to load tokens: HTTP 502: Bad Gateway'
    assert [token.symbol for token in loader.from_tokens] == ['BONK', 'SOL']
    assert loader.to_tokens == []


async def test_rate_limit_marks_loader(loader, fake_queue, gateway_client):
    fake_queue.overrides[gateway_client.bridges_url()] = RateLimitExceededError('Loading bridges', 3)

    await loader.load_all_data()

    assert loader.is_rate_limited
    assert loader.error == 'Failed to load data: Rate limit exceeded for Loading bridges after 3 retries'


async def test_overlapping_loads_share_one_pipeline(loader, fake_queue):
    await asyncio.gather(loader.load_all_data(), loader.load_all_data())

    assert len(fake_queue.calls) == 4
    assert loader.step == LoadingStep.DONE


async def test_chain_change_before_pairs_loaded_does_nothing(loader, fake_queue, chains):
    loader.set_to_chain(chains.get_chain_by_index('56'))
    await loader.wait_for_reload()

    assert fake_queue.calls == []


async def test_chain_changes_are_debounced(loader, fake_queue, chains):
    await loader.load_all_data()
    fake_queue.calls.clear()

    loader.set_to_chain(chains.get_chain_by_index('137'))
    loader.set_to_chain(chains.get_chain_by_index('42161'))
    await loader.wait_for_reload()

    assert [name for _, name in fake_queue.calls] == ['Loading Solana tokens', 'Loading Arbitrum tokens']
    assert loader.to_chain.name == 'Arbitrum'
    assert loader.to_token.symbol == 'USDT'
    assert loader.pair_validation.message == 'No supported pairs between Solana and Arbitrum'


async def test_current_chain_pairs_and_combinations(loader, pairs_response):
    loader.pairs = [TokenPair.model_validate(pair) for pair in pairs_response['pairs']]
    loader.pairs.append(TokenPair(
        from_chain_index='501', to_chain_index='999', from_token_symbol='SOL', to_token_symbol='X',
    ))

    assert [pair.pair_id for pair in loader.current_chain_pairs()] == ['501-1-SOL-USDC', '501-1-USDC-USDC']
    combinations = loader.chain_combinations()
    assert [(c['from'].name, c['to'].name, len(c['pairs'])) for c in combinations] == [
        ('Solana', 'Ethereum', 2),
        ('Solana', 'BNB Chain', 1),
    ]


def test_pick_default_token_keeps_current_selection():
    bonk = Token(symbol='BONK', address='bonk', decimals=5, chain_index='501')
    sol = Token(symbol='SOL', address='sol', decimals=9, chain_index='501')

    assert pick_default_token([bonk, sol], bonk, 'SOL') == bonk
    assert pick_default_token([bonk, sol], None, 'SOL') == sol
    assert pick_default_token([bonk], None, 'SOL') == bonk
    assert pick_default_token([], bonk, 'SOL') is None


async def test_progress_follows_steps(loader, fake_queue):
    seen = []
    original = fake_queue.enqueue

    async def recording_enqueue(url, name, initial_delay=5.0):
        seen.append((loader.step, loader.progress.progress))
        return await original(url, name, initial_delay)

    with mock.patch.object(fake_queue, 'enqueue', recording_enqueue):
        await loader.load_all_data()

    assert seen == [
        (LoadingStep.LOADING_BRIDGES, 25),
        (LoadingStep.LOADING_PAIRS, 50),
        (LoadingStep.LOADING_FROM_TOKENS, 75),
        (LoadingStep.LOADING_TO_TOKENS, 100),
    ]


async def test_refresh_right_after_chain_change_keeps_step_order(loader, fake_queue, chains):
    await loader.load_all_data()
    fake_queue.calls.clear()
    seen = []
    original = fake_queue.enqueue

    async def slow_enqueue(url, name, initial_delay=5.0):
        seen.append((name, loader.step))
        if name in ('Loading bridges', 'Loading token pairs'):
            # longer than the debounce window
            await asyncio.sleep(0.05)
        return await original(url, name, initial_delay)

    with mock.patch.object(fake_queue, 'enqueue', slow_enqueue):
        loader.set_to_chain(chains.get_chain_by_index('137'))
        await loader.load_all_data()
        await loader.wait_for_reload()

    assert seen == [
        ('Loading bridges', LoadingStep.LOADING_BRIDGES),
        ('Loading token pairs', LoadingStep.LOADING_PAIRS),
        ('Loading Solana tokens', LoadingStep.LOADING_FROM_TOKENS),
        ('Loading Polygon tokens', LoadingStep.LOADING_TO_TOKENS),
    ]
    assert loader.step == LoadingStep.DONE
    assert loader.to_token.symbol == 'USDT'


async def test_chain_change_during_load_reloads_after_it(loader, fake_queue, chains):
    original = fake_queue.enqueue

    async def enqueue_changing_chain(url, name, initial_delay=5.0):
        if name == 'Loading Solana tokens' and loader.to_chain.index == '1':
            loader.set_to_chain(chains.get_chain_by_index('137'))
        return await original(url, name, initial_delay)

    with mock.patch.object(fake_queue, 'enqueue', enqueue_changing_chain):
        await loader.load_all_data()
        await loader.wait_for_reload()

    assert [name for _, name in fake_queue.calls] == [
        'Loading bridges',
        'Loading token pairs',
        'Loading Solana tokens',
        'Loading Ethereum tokens',
        'Loading Solana tokens',
        'Loading Polygon tokens',
    ]
    assert loader.step == LoadingStep.DONE
    assert [token.symbol for token in loader.to_tokens] == ['USDT']
