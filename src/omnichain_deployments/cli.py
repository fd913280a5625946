"""Command line interface for omnichain-deployments library."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Optional, Sequence

from .exceptions import DeploymentError
from .omnichain import OmnichainDeployer, TargetSelection
from .types import (
    AggregateResult,
    DeploymentProfile,
    DeploymentRequest,
    ManifestFilter,
    TargetDescriptor,
)

logger = logging.getLogger(__name__)


def setup_console_logging(level: int = logging.INFO) -> None:
    """Send library logs to stderr."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )


def parse_constructor_arg(value: str) -> Any:
    """Interpret a command line argument as JSON, falling back to the raw string."""
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="omnichain-deploy",
        description="Deploy a compiled contract to many EVM networks at once",
    )
    parser.add_argument("--home", help="Directory holding deployments.json and chains.yaml")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    deploy = commands.add_parser("deploy", help="Deploy a contract artifact")
    deploy.add_argument("artifact", help="Path to compiled artifact JSON")
    deploy.add_argument("-n", "--to", default="all", help='Target name or "all"')
    deploy.add_argument("--chains", nargs="+", help="Only deploy to these targets")
    deploy.add_argument("--exclude", nargs="+", help="Skip these targets")
    deploy.add_argument("--group", help="Chain group: testnet, mainnet, l2, l1")
    deploy.add_argument("-a", "--args", nargs="*", default=[], help="Constructor arguments")
    deploy.add_argument("--create2", action="store_true", help="Same address on every target")
    deploy.add_argument("--salt", help="32-byte hex CREATE2 salt")
    deploy.add_argument("--profile", help="Deployment profile (applies its settings)")
    deploy.add_argument("-p", "--private-key", help="Deployer key (overrides $PRIVATE_KEY)")
    deploy.add_argument("--no-manifest", action="store_true", help="Do not record results")

    chains = commands.add_parser("chains", help="Manage target networks")
    chain_commands = chains.add_subparsers(dest="chains_command", required=True)
    chain_commands.add_parser("list", help="List configured targets")
    add = chain_commands.add_parser("add", help="Add a target")
    add.add_argument("name")
    add.add_argument("rpc")
    add.add_argument("chain_id", type=int)
    add.add_argument("--explorer")
    add.add_argument("--skip-validation", action="store_true")
    remove = chain_commands.add_parser("remove", help="Remove a target")
    remove.add_argument("name")

    deployments = commands.add_parser("deployments", help="View and manage deployment history")
    dep_commands = deployments.add_subparsers(dest="deployments_command", required=True)
    listing = dep_commands.add_parser("list", help="List recorded deployments")
    listing.add_argument("--chain")
    listing.add_argument("--contract")
    listing.add_argument("--profile")
    listing.add_argument("--limit", type=int)
    summary = dep_commands.add_parser("summary", help="Show omnichain deployment sessions")
    summary.add_argument("--limit", type=int, default=10)
    export = dep_commands.add_parser("export", help="Export the manifest")
    export.add_argument("path")
    imported = dep_commands.add_parser("import", help="Merge an exported manifest")
    imported.add_argument("path")
    clear = dep_commands.add_parser("clear", help="Delete all deployment records")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")

    profiles = commands.add_parser("profiles", help="Manage deployment profiles")
    profile_commands = profiles.add_subparsers(dest="profiles_command", required=True)
    profile_commands.add_parser("list", help="List deployment profiles")
    show = profile_commands.add_parser("show", help="Show one profile")
    show.add_argument("name")
    create = profile_commands.add_parser("create", help="Create or update a profile")
    create.add_argument("name")
    create.add_argument("--gas-multiplier", type=float, help="Gas limit multiplier")
    create.add_argument("--gas-price-multiplier", type=float, help="Gas price multiplier")
    create.add_argument("--confirmations", type=int, help="Confirmations to wait for")
    create.add_argument("--timeout", type=int, help="Receipt timeout in ms")
    create.add_argument("--create2", action="store_true", default=None, help="Use CREATE2")
    create.add_argument("--salt", help="Default CREATE2 salt")
    create.add_argument("--exclude", nargs="+", help="Targets to skip")
    create.add_argument("--only", nargs="+", help="Only deploy to these targets")
    delete = profile_commands.add_parser("delete", help="Delete a profile")
    delete.add_argument("name")

    return parser


def print_result(result: AggregateResult) -> None:
    print(f"\n===== Omnichain Deployment Results ({result.success_count}/{result.total}) =====\n")
    for r in result.results:
        if r.success:
            print(f"[ok]   {r.target}")
            print(f"         Address: {r.address}")
            print(f"         Tx Hash: {r.tx_hash}")
            print(f"         Block:   {r.block_number}")
        else:
            print(f"[fail] {r.target}: {r.error}")
    if len(result.address_by_target) > 1 and not result.has_consistent_address():
        print("\nWarning: successful targets reported different addresses")
    print("")


def _deploy(omnichain: OmnichainDeployer, args: argparse.Namespace) -> int:
    request = DeploymentRequest(
        artifact_path=args.artifact,
        constructor_args=[parse_constructor_arg(a) for a in args.args],
        signing_key=args.private_key,
        salt=args.salt,
        use_deterministic_address=args.create2 or args.salt is not None,
        profile_name=args.profile,
    )
    selection = TargetSelection(
        names=args.chains, exclude=args.exclude, group=args.group, to=args.to
    )
    result = asyncio.run(omnichain.deploy(request, selection, save_manifest=not args.no_manifest))
    print_result(result)
    return 0 if result.all_succeeded else 1


def _chains(omnichain: OmnichainDeployer, args: argparse.Namespace) -> int:
    if args.chains_command == "list":
        for t in omnichain.registry.targets():
            explorer = f"  {t.explorer_url}" if t.explorer_url else ""
            print(f"{t.name}  (chainId {t.network_id})  {t.endpoint_url}{explorer}")
    elif args.chains_command == "add":
        target = TargetDescriptor(
            name=args.name,
            endpoint_url=args.rpc,
            network_id=args.chain_id,
            explorer_url=args.explorer,
        )
        omnichain.registry.add_target(target, validate=not args.skip_validation)
        print(f'Chain "{target.name}" added')
    elif args.chains_command == "remove":
        omnichain.registry.remove_target(args.name)
        print(f'Chain "{args.name}" removed')
    return 0


def _deployments(omnichain: OmnichainDeployer, args: argparse.Namespace) -> int:
    command = args.deployments_command
    if command == "list":
        records = omnichain.manifest.query(
            ManifestFilter(contract_name=args.contract, target=args.chain, profile_name=args.profile)
        )
        records.sort(key=lambda r: r.timestamp, reverse=True)
        if args.limit:
            records = records[: args.limit]
        if not records:
            print("No deployments found")
        for r in records:
            print(f"{r.contract_name}  {r.target}  {r.address}  block {r.block_number}  {r.timestamp}")
            if r.profile_name:
                print(f"    Profile: {r.profile_name}")
            if r.salt:
                print(f"    CREATE2 Salt: {r.salt}")
    elif command == "summary":
        sessions = omnichain.omnichain_summary(args.limit)
        if not sessions:
            print("No omnichain deployments found")
        for s in sessions:
            print(f"{s.contract_name}  {s.timestamp}  ({len(s.targets)} chain(s))")
            for target, address in s.address_by_target.items():
                print(f"    {target}: {address}")
    elif command == "export":
        path = omnichain.manifest.export_to(args.path)
        print(f"Exported deployments to {path}")
    elif command == "import":
        count = omnichain.manifest.import_from(args.path)
        print(f"Imported {count} deployment(s)")
    elif command == "clear":
        if not args.yes:
            print("Refusing to clear deployments without --yes", file=sys.stderr)
            return 1
        omnichain.manifest.clear()
        print("All deployments cleared")
    return 0


def print_profile(profile: DeploymentProfile) -> None:
    print(profile.name)
    print(f"    Gas Multiplier: {profile.gas_multiplier or 1.2}")
    print(f"    Gas Price Multiplier: {profile.gas_price_multiplier or 1.0}")
    print(f"    Confirmations: {profile.confirmations or 1}")
    print(f"    Timeout: {profile.timeout_ms or 120000}ms")
    print(f"    CREATE2: {'Yes' if profile.use_create2 else 'No'}")
    if profile.salt:
        print(f"    Salt: {profile.salt}")
    if profile.exclude_chains:
        print(f"    Exclude: {', '.join(profile.exclude_chains)}")
    if profile.only_chains:
        print(f"    Only: {', '.join(profile.only_chains)}")


def _profiles(omnichain: OmnichainDeployer, args: argparse.Namespace) -> int:
    command = args.profiles_command
    if command == "list":
        for profile in omnichain.profiles.profiles():
            print_profile(profile)
    elif command == "show":
        print_profile(omnichain.profiles.get(args.name))
    elif command == "create":
        existing = omnichain.profiles.find(args.name) or DeploymentProfile(args.name)
        profile = DeploymentProfile(
            name=args.name,
            gas_multiplier=args.gas_multiplier or existing.gas_multiplier,
            gas_price_multiplier=args.gas_price_multiplier or existing.gas_price_multiplier,
            confirmations=args.confirmations or existing.confirmations,
            timeout_ms=args.timeout or existing.timeout_ms,
            use_create2=existing.use_create2 if args.create2 is None else args.create2,
            salt=args.salt or existing.salt,
            exclude_chains=args.exclude or existing.exclude_chains,
            only_chains=args.only or existing.only_chains,
        )
        omnichain.profiles.save(profile)
        print(f'Profile "{profile.name}" saved')
    elif command == "delete":
        omnichain.profiles.delete(args.name)
        print(f'Profile "{args.name}" deleted')
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_console_logging(logging.DEBUG if args.verbose else logging.INFO)

    omnichain = OmnichainDeployer(home=args.home)
    handlers = {
        "deploy": _deploy,
        "chains": _chains,
        "deployments": _deployments,
        "profiles": _profiles,
    }
    try:
        return handlers[args.command](omnichain, args)
    except DeploymentError as e:
        logger.error("%s: %s", e.kind, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
