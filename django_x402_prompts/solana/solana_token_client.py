from solders.pubkey import Pubkey

from django_x402_prompts.settings import x402_prompts_settings
from django_x402_prompts.solana.utils import parse_pubkey


def get_associated_token_address(
    wallet_address: Pubkey | str,
    token_mint_address: Pubkey | str,
    token_program_id: Pubkey | str | None = None,
    associated_token_program_id: Pubkey | str | None = None,
) -> Pubkey:
    """
    Derives the associated token account of a wallet for a mint.

    Pure and offline: the address is a program derived address of the
    Associated Token program, so no account lookup is needed. Raises
    InvalidAddressError on malformed inputs.
    """
    wallet_address = parse_pubkey(wallet_address)
    token_mint_address = parse_pubkey(token_mint_address)
    token_program_id = parse_pubkey(
        token_program_id or x402_prompts_settings.TOKEN_PROGRAM_ID
    )
    associated_token_program_id = parse_pubkey(
        associated_token_program_id
        or x402_prompts_settings.ASSOCIATED_TOKEN_PROGRAM_ID
    )

    # The order of seeds passed to find_program_address matters and
    # must match what the Associated Token program expects
    seeds = [bytes(wallet_address), bytes(token_program_id), bytes(token_mint_address)]

    associated_token_address, _ = Pubkey.find_program_address(
        seeds, associated_token_program_id
    )

    return associated_token_address


class SolanaTokenClient:
    """Associated token addresses for the configured payment mint."""

    def __init__(self, token_mint_address: Pubkey | str | None = None):
        self.token_mint_address = parse_pubkey(
            token_mint_address or x402_prompts_settings.USDC_MINT_ADDRESS
        )

    def get_associated_token_address(self, wallet_address: Pubkey | str) -> Pubkey:
        return get_associated_token_address(wallet_address, self.token_mint_address)
