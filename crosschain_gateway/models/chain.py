from pydantic import BaseModel


class ChainModel(BaseModel):
    name: str
    index: str  # chain identifier in the OKX chain registry, e.g. '501'
    id: str
    color: str = ''

    @property
    def is_solana(self) -> bool:
        return self.index == '501'
