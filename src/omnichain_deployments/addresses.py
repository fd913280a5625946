"""Deterministic (CREATE2) address derivation for omnichain-deployments library."""

from typing import Any, Dict, List, Optional, Sequence, Union

from eth_abi import encode
from eth_utils import is_address, keccak, to_bytes, to_canonical_address, to_checksum_address
from eth_utils.abi import collapse_if_tuple

from .constants import CREATE2_PROXY_ADDRESS, DEFAULT_CREATE2_SALT

BytesLike = Union[bytes, str]


def _as_bytes(value: BytesLike) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return to_bytes(hexstr=value)


def normalize_salt(salt: Optional[BytesLike] = None) -> bytes:
    """
    Convert a salt to exactly 32 bytes.

    Args:
        salt: 32 raw bytes or a 0x-prefixed 64-digit hex string
              (defaults to DEFAULT_CREATE2_SALT)

    Returns:
        32-byte salt

    Raises:
        ValueError: If the salt is not 32 bytes long
    """
    if salt is None:
        salt = DEFAULT_CREATE2_SALT
    salt_bytes = _as_bytes(salt)
    if len(salt_bytes) != 32:
        raise ValueError(f"CREATE2 salt must be 32 bytes, got {len(salt_bytes)}")
    return salt_bytes


def encode_constructor_args(abi: List[Dict[str, Any]], args: Sequence[Any]) -> bytes:
    """
    ABI-encode constructor arguments.

    Args:
        abi: Contract ABI
        args: Constructor argument values in declaration order

    Returns:
        Encoded arguments; empty when there are no args or no constructor

    Raises:
        ValueError: If the argument count does not match the constructor
    """
    if not args:
        return b""

    constructor = next((item for item in abi if item.get("type") == "constructor"), None)
    if constructor is None or not constructor.get("inputs"):
        return b""

    inputs = constructor["inputs"]
    if len(inputs) != len(args):
        raise ValueError(
            f"Constructor expects {len(inputs)} argument(s), got {len(args)}"
        )

    types = [collapse_if_tuple(item) for item in inputs]
    return encode(types, list(args))


def build_init_payload(bytecode: BytesLike, encoded_args: bytes = b"") -> bytes:
    """
    Concatenate creation bytecode and encoded constructor arguments.

    Args:
        bytecode: Contract creation bytecode
        encoded_args: Output of encode_constructor_args()

    Returns:
        Init payload (bytecode first, then args)
    """
    return _as_bytes(bytecode) + encoded_args


def build_proxy_calldata(salt: BytesLike, init_payload: bytes) -> bytes:
    """Calldata understood by the deployment proxy: salt followed by init payload."""
    return normalize_salt(salt) + init_payload


def compute_create2_address(
    salt: BytesLike,
    init_payload: BytesLike,
    proxy_address: str = CREATE2_PROXY_ADDRESS,
) -> str:
    """
    Compute the address a CREATE2 deployment will land at.

    address = keccak256(0xff ++ proxy ++ salt ++ keccak256(init_payload))[12:]

    Args:
        salt: 32-byte salt
        init_payload: Creation bytecode followed by encoded constructor args
        proxy_address: Address of the contract executing CREATE2

    Returns:
        Checksummed address

    Raises:
        ValueError: If the salt or proxy address is malformed
    """
    if not is_address(proxy_address):
        raise ValueError(f"Invalid proxy address: {proxy_address}")

    preimage = (
        b"\xff"
        + to_canonical_address(proxy_address)
        + normalize_salt(salt)
        + keccak(_as_bytes(init_payload))
    )
    return to_checksum_address(keccak(preimage)[12:])
