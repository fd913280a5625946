"""Single-target contract deployment for omnichain-deployments library."""

import logging
import os
from typing import Any, Callable, Dict, Optional, Tuple

from eth_abi.exceptions import EncodingError
from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import from_wei, to_checksum_address, to_hex

from .addresses import (
    build_init_payload,
    build_proxy_calldata,
    compute_create2_address,
    encode_constructor_args,
    normalize_salt,
)
from .constants import CREATE2_PROXY_ADDRESS, PRIVATE_KEY_ENV, RECEIPT_TIMEOUT_SECONDS
from .endpoints import TargetEndpoint, Web3Endpoint
from .exceptions import (
    DeploymentError,
    DeploymentFailedError,
    InsufficientFundsError,
    MissingSigningKeyError,
)
from .fees import estimate_fees
from .types import ContractArtifact, DeploymentRequest, PerTargetResult, TargetDescriptor

logger = logging.getLogger(__name__)

EndpointFactory = Callable[[TargetDescriptor], TargetEndpoint]


def resolve_signing_key(request: DeploymentRequest) -> str:
    """
    Get the signing key for a request.

    Args:
        request: Deployment request

    Returns:
        request.signing_key, or $PRIVATE_KEY when the request carries none

    Raises:
        MissingSigningKeyError: If neither is set
    """
    key = request.signing_key or os.environ.get(PRIVATE_KEY_ENV)
    if not key:
        raise MissingSigningKeyError(
            f"Private key is required. Set ${PRIVATE_KEY_ENV} or pass signing_key."
        )
    return key


class SingleTargetDeployer:
    """Deploys one artifact to one target, in direct or CREATE2 mode."""

    def __init__(
        self,
        endpoint_factory: EndpointFactory = Web3Endpoint,
        receipt_timeout: float = RECEIPT_TIMEOUT_SECONDS,
        proxy_address: str = CREATE2_PROXY_ADDRESS,
    ):
        self.endpoint_factory = endpoint_factory
        self.receipt_timeout = receipt_timeout
        self.proxy_address = proxy_address

    async def deploy_to_target(
        self,
        request: DeploymentRequest,
        artifact: ContractArtifact,
        target: TargetDescriptor,
    ) -> PerTargetResult:
        """
        Deploy ``artifact`` to ``target``.

        Per-target failures (insufficient funds, RPC errors, reverts, receipt
        timeouts) are returned as a PerTargetResult with ``success=False``.

        Args:
            request: Deployment request
            artifact: Compiled contract
            target: Network to deploy to

        Returns:
            PerTargetResult

        Raises:
            MissingSigningKeyError: If no signing key is available
            ValueError: If the signing key is malformed
        """
        account = Account.from_key(resolve_signing_key(request))
        endpoint = self.endpoint_factory(target)

        try:
            if request.use_deterministic_address:
                result = await self._deploy_deterministic(endpoint, account, request, artifact, target)
            else:
                result = await self._deploy_direct(endpoint, account, request, artifact, target)
        except DeploymentError as e:
            logger.error("%s: deployment failed: %s", target.name, e)
            return PerTargetResult.failure(target.name, target.network_id, str(e), e.kind)

        logger.info("%s: deployed at %s (tx %s)", target.name, result.address, result.tx_hash)
        return result

    async def _deploy_direct(
        self,
        endpoint: TargetEndpoint,
        account: LocalAccount,
        request: DeploymentRequest,
        artifact: ContractArtifact,
        target: TargetDescriptor,
    ) -> PerTargetResult:
        init_payload = self._init_payload(artifact, request)

        tx_hash, receipt = await self._submit(
            endpoint, account, request, target, {"data": to_hex(init_payload), "value": 0}
        )

        contract_address = receipt.get("contractAddress")
        if not contract_address:
            raise DeploymentFailedError(
                f"Receipt on {target.name} carries no contract address (tx {tx_hash})"
            )

        return PerTargetResult(
            target=target.name,
            network_id=target.network_id,
            address=to_checksum_address(contract_address),
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            success=True,
            salt=request.salt,
            profile_name=request.profile_name,
            deployer_address=account.address,
        )

    async def _deploy_deterministic(
        self,
        endpoint: TargetEndpoint,
        account: LocalAccount,
        request: DeploymentRequest,
        artifact: ContractArtifact,
        target: TargetDescriptor,
    ) -> PerTargetResult:
        init_payload = self._init_payload(artifact, request)
        try:
            salt = normalize_salt(request.salt)
        except ValueError as e:
            raise DeploymentFailedError(str(e)) from e

        logger.debug(
            "%s: CREATE2 via %s, salt %s, init payload %d bytes",
            target.name,
            self.proxy_address,
            to_hex(salt),
            len(init_payload),
        )

        tx_hash, receipt = await self._submit(
            endpoint,
            account,
            request,
            target,
            {
                "to": self.proxy_address,
                "data": to_hex(build_proxy_calldata(salt, init_payload)),
                "value": 0,
            },
        )

        # The proxy returns nothing usable on many networks; derive the address.
        address = compute_create2_address(salt, init_payload, self.proxy_address)

        return PerTargetResult(
            target=target.name,
            network_id=target.network_id,
            address=address,
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            success=True,
            salt=to_hex(salt),
            profile_name=request.profile_name,
            deployer_address=account.address,
        )

    def _init_payload(self, artifact: ContractArtifact, request: DeploymentRequest) -> bytes:
        try:
            encoded_args = encode_constructor_args(artifact.abi, request.constructor_args)
        except (EncodingError, TypeError, ValueError) as e:
            raise DeploymentFailedError(f"Invalid constructor arguments: {e}") from e
        return build_init_payload(artifact.bytecode, encoded_args)

    async def _submit(
        self,
        endpoint: TargetEndpoint,
        account: LocalAccount,
        request: DeploymentRequest,
        target: TargetDescriptor,
        transaction: Dict[str, Any],
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Estimate, fund-check, sign, broadcast and wait for one transaction.

        Returns:
            Tuple of (tx_hash, receipt)
        """
        network_id = await endpoint.get_network_id()
        if network_id != target.network_id:
            raise DeploymentFailedError(
                f"Chain ID mismatch on {target.name}: expected {target.network_id}, "
                f"got {network_id}"
            )

        fees = await estimate_fees(
            endpoint,
            {**transaction, "from": account.address},
            gas_limit_multiplier=request.gas_limit_multiplier,
            gas_price_multiplier=request.gas_price_multiplier,
        )

        balance = await endpoint.get_balance(account.address)
        if balance < fees.required_funds:
            raise InsufficientFundsError(
                f"Insufficient funds on {target.name}. "
                f"Required: {from_wei(fees.required_funds, 'ether')} ETH, "
                f"Balance: {from_wei(balance, 'ether')} ETH",
                required=fees.required_funds,
                available=balance,
            )

        nonce = await endpoint.get_transaction_count(account.address)
        signed = account.sign_transaction(
            {
                **transaction,
                "gas": fees.gas_limit,
                "gasPrice": fees.gas_price,
                "nonce": nonce,
                "chainId": target.network_id,
            }
        )

        tx_hash = await endpoint.send_raw_transaction(signed.raw_transaction)
        logger.info("%s: sent %s, waiting for receipt", target.name, tx_hash)

        timeout = request.receipt_timeout or self.receipt_timeout
        receipt: Optional[Dict[str, Any]] = await endpoint.wait_for_receipt(tx_hash, timeout)
        if receipt is None:
            raise DeploymentFailedError(
                f"No receipt for {tx_hash} on {target.name} within {timeout:g} seconds"
            )
        if receipt.get("status") != 1:
            raise DeploymentFailedError(f"Transaction {tx_hash} failed on {target.name}")

        return tx_hash, receipt
