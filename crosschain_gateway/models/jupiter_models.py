from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JupiterQuoteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    input_mint: str = Field(..., alias='inputMint')
    in_amount: str = Field(..., alias='inAmount')
    output_mint: str = Field(..., alias='outputMint')
    out_amount: str = Field(..., alias='outAmount')
    other_amount_threshold: Optional[str] = Field(None, alias='otherAmountThreshold')
    swap_mode: Optional[str] = Field(None, alias='swapMode')
    slippage_bps: Optional[int] = Field(None, alias='slippageBps')
    price_impact_pct: Optional[str] = Field(None, alias='priceImpactPct')
    route_plan: list = Field([], alias='routePlan')


class JupiterToken(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    address: str
    name: str
    symbol: str
    decimals: int
    logo_uri: Optional[str] = Field(None, alias='logoURI')
    tags: List[str] = []


class JupiterSwapTransaction(BaseModel):
    """Unsigned, base64-encoded transaction built by Jupiter for the user to sign."""

    model_config = ConfigDict(populate_by_name=True, extra='allow')

    swap_transaction: str = Field(..., alias='swapTransaction')
    last_valid_block_height: int = Field(..., alias='lastValidBlockHeight')
    prioritization_fee_lamports: Optional[int] = Field(None, alias='prioritizationFeeLamports')
    compute_unit_limit: Optional[int] = Field(None, alias='computeUnitLimit')


class JupiterSwapInstructions(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='allow')

    token_ledger_instruction: Optional[dict] = Field(None, alias='tokenLedgerInstruction')
    compute_budget_instructions: list = Field([], alias='computeBudgetInstructions')
    setup_instructions: list = Field([], alias='setupInstructions')
    swap_instruction: dict = Field(..., alias='swapInstruction')
    cleanup_instruction: Optional[dict] = Field(None, alias='cleanupInstruction')
    address_lookup_table_addresses: List[str] = Field([], alias='addressLookupTableAddresses')


class JupiterSwapRequest(BaseModel):
    """Body of the swap build routes: quote parameters plus the wallet that signs."""

    model_config = ConfigDict(populate_by_name=True)

    user_public_key: str = Field(..., alias='userPublicKey', min_length=1)
    input_mint: str = Field(..., alias='inputMint', min_length=1)
    output_mint: str = Field(..., alias='outputMint', min_length=1)
    amount: str = Field(..., pattern=r'^\d+$', description='Amount in base units')
    slippage_bps: int = Field(50, alias='slippageBps', ge=0, le=10000)
    wrap_and_unwrap_sol: bool = Field(True, alias='wrapAndUnwrapSol')
    as_legacy_transaction: bool = Field(False, alias='asLegacyTransaction')
