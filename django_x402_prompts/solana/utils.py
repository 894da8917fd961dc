from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from solders.pubkey import Pubkey
from solders.signature import Signature

from django_x402_prompts.exceptions import InvalidAddressError

API_KEY_QUERY_PARAM = "api-key"


def parse_pubkey(address: Pubkey | str) -> Pubkey:
    """
    Parse a base58 address into a `solders.pubkey.Pubkey`.

    Raises InvalidAddressError on wrong length or alphabet.
    """
    if isinstance(address, Pubkey):
        return address

    if not isinstance(address, str):
        raise InvalidAddressError(address)

    try:
        return Pubkey.from_string(address.strip())
    except ValueError as exc:
        raise InvalidAddressError(address) from exc


def is_valid_address(address) -> bool:
    try:
        parse_pubkey(address)
    except InvalidAddressError:
        return False
    return True


def is_valid_signature(signature) -> bool:
    if not isinstance(signature, str):
        return False
    try:
        Signature.from_string(signature.strip())
    except ValueError:
        return False
    return True


def build_rpc_url(rpc_url: str, api_key: str | None = None) -> str:
    """Appends the api-key query parameter unless the URL already carries one."""
    if not api_key:
        return rpc_url

    parts = urlsplit(rpc_url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    if any(key == API_KEY_QUERY_PARAM for key, _ in query):
        return rpc_url

    query.append((API_KEY_QUERY_PARAM, api_key))
    return urlunsplit(parts._replace(query=urlencode(query)))


def mask_rpc_url(rpc_url: str) -> str:
    if API_KEY_QUERY_PARAM not in rpc_url:
        return rpc_url
    return rpc_url.split("?")[0] + f"?{API_KEY_QUERY_PARAM}=***"
