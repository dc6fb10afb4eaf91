from pathlib import Path
from typing import Iterator

import ujson

from crosschain_gateway.models.chain import ChainModel

CHAINS_FILE = Path(__file__).parent / 'chains.json'


class ChainsConfig:
    """
    Static registry of the chains the gateway can route between.
    Chains are read once from chains.json and never change afterwards.
    Usage:
        from crosschain_gateway.config import chains
        chains.get_chain_by_index('501').name
        # 'Solana'
    """

    def __init__(self, path: Path = CHAINS_FILE) -> None:
        with open(path) as f:
            self.chains = [ChainModel.model_validate(item) for item in ujson.load(f)]

    def __iter__(self) -> Iterator[ChainModel]:
        return iter(self.chains)

    def __len__(self) -> int:
        return len(self.chains)

    def __contains__(self, item: str) -> bool:
        return any(chain.index == item for chain in self.chains)

    def get_chain_by_index(self, chain_index: str) -> ChainModel:
        for chain in self.chains:
            if chain.index == chain_index:
                return chain
        raise ValueError(f'Chain index {chain_index} not found')

    def names_by_index(self) -> dict[str, str]:
        return {chain.index: chain.name for chain in self.chains}
