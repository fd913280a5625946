"""Gas limit and fee estimation for omnichain-deployments library."""

import logging
from typing import Any, Dict, Optional

from .constants import (
    FALLBACK_GAS_LIMIT,
    FALLBACK_GAS_PRICE,
    GAS_LIMIT_BUFFER,
    GAS_LIMIT_MULTIPLIER_DENOMINATOR,
    GAS_LIMIT_MULTIPLIER_NUMERATOR,
    MIN_GAS_PRICE,
)
from .endpoints import TargetEndpoint
from .exceptions import RpcUnavailableError
from .types import FeeData, FeeEstimate

logger = logging.getLogger(__name__)


def pad_gas_limit(estimated_gas: int, multiplier: Optional[float] = None) -> int:
    """
    Inflate a raw gas estimate by a safety margin and add a fixed buffer.

    Args:
        estimated_gas: eth_estimateGas result
        multiplier: Safety margin (defaults to 1.2)

    Returns:
        Gas limit to put on the transaction
    """
    if multiplier is None:
        padded = estimated_gas * GAS_LIMIT_MULTIPLIER_NUMERATOR // GAS_LIMIT_MULTIPLIER_DENOMINATOR
    else:
        padded = int(estimated_gas * multiplier)
    return padded + GAS_LIMIT_BUFFER


def resolve_gas_price(fee_data: FeeData) -> int:
    """
    Pick a fee-per-gas from network fee data.

    The dynamic fee field wins over the legacy one. Anything under
    MIN_GAS_PRICE is treated as a broken endpoint and replaced by
    FALLBACK_GAS_PRICE.

    Args:
        fee_data: Fee fields reported by the network

    Returns:
        Fee per gas in wei

    Raises:
        RpcUnavailableError: If the network reported no fee field at all
    """
    if fee_data.max_fee_per_gas:
        gas_price = fee_data.max_fee_per_gas
    elif fee_data.gas_price is not None:
        gas_price = fee_data.gas_price
    else:
        raise RpcUnavailableError("Provider did not return fee data")

    if gas_price < MIN_GAS_PRICE:
        logger.warning(
            "Provider suggested gas price %d wei, below %d wei floor; using %d wei",
            gas_price,
            MIN_GAS_PRICE,
            FALLBACK_GAS_PRICE,
        )
        gas_price = FALLBACK_GAS_PRICE

    return gas_price


async def estimate_fees(
    endpoint: TargetEndpoint,
    transaction: Dict[str, Any],
    gas_limit_multiplier: Optional[float] = None,
    gas_price_multiplier: Optional[float] = None,
) -> FeeEstimate:
    """
    Estimate gas limit and fee-per-gas for a pending transaction.

    Never raises for network problems: on any RPC failure or malformed
    response the fixed defaults (FALLBACK_GAS_LIMIT, FALLBACK_GAS_PRICE)
    are returned with ``fallback=True``. Multipliers only apply to
    network-derived values, never to the defaults.

    Args:
        endpoint: Target network endpoint
        transaction: Transaction shape (from, to, data, value)
        gas_limit_multiplier: Safety margin on the raw estimate (defaults to 1.2)
        gas_price_multiplier: Factor applied to the resolved fee-per-gas

    Returns:
        FeeEstimate
    """
    try:
        estimated_gas = await endpoint.estimate_gas(transaction)
        gas_limit = pad_gas_limit(int(estimated_gas), gas_limit_multiplier)
        fee_data = await endpoint.get_fee_data()
        gas_price = resolve_gas_price(fee_data)
    except (RpcUnavailableError, KeyError, TypeError, ValueError) as e:
        logger.warning("Could not estimate gas, using safe defaults: %s", e)
        return FeeEstimate(
            gas_limit=FALLBACK_GAS_LIMIT, gas_price=FALLBACK_GAS_PRICE, fallback=True
        )

    if gas_price_multiplier is not None:
        gas_price = int(gas_price * gas_price_multiplier)

    return FeeEstimate(gas_limit=gas_limit, gas_price=gas_price)
