"""Main CLI entry point"""

import sys
import json
import asyncio
import argparse
from datetime import datetime
from pathlib import Path

from ..core.config import Config
from ..core.exceptions import AMMError
from ..core.wallet import generate_wallet
from ..operations.distribute import TokenDistributor
from ..operations.provision import LiquidityProvisioner
from ..utils.logs import setup_logging
from ..utils.math import from_units


def get_results_dir():
    """Get results directory, create if needed"""
    results_dir = Path.cwd() / "results"
    results_dir.mkdir(exist_ok=True)
    return results_dir


def save_result(filename, data):
    """Save result to JSON file in results directory"""
    results_dir = get_results_dir()
    filepath = results_dir / filename
    with open(filepath, "w") as f:
        json.dump(data, f, indent=2, default=str)
    return filepath


def timestamp():
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def load_config():
    """Load settings and start logging as they ask"""
    config = Config()
    setup_logging(config.log_level, config.log_file)
    return config


def cmd_provision(args):
    """Add liquidity from every configured sub-wallet"""
    config = load_config()
    if args.concurrency is not None:
        config.concurrency_limit = args.concurrency
    if args.group_delay is not None:
        config.group_delay = args.group_delay

    summary = asyncio.run(LiquidityProvisioner(config).run())

    print("=" * 60)
    print(f"LIQUIDITY PROVISIONING: {summary.succeeded}/{summary.total} succeeded")
    print("=" * 60)
    for outcome in summary.outcomes:
        if outcome.success:
            print(f"  Wallet {outcome.wallet_index + 1}: OK   {outcome.transaction_id}")
        else:
            print(f"  Wallet {outcome.wallet_index + 1}: FAIL {outcome.error}")
    print("=" * 60)

    result = {"settings": config.summary(), **summary.to_dict()}
    filepath = save_result(f"provision_{timestamp()}.json", result)
    print(f"\nSaved to {filepath}", file=sys.stderr)

    if not summary.all_succeeded:
        sys.exit(1)


def cmd_quote(args):
    """Quote the configured deposit without sending anything"""
    config = load_config()
    provisioner = LiquidityProvisioner(config)
    quote = asyncio.run(provisioner.quote_only())

    token_amount = from_units(quote.input_amount, provisioner.token_decimals)
    native_amount = from_units(quote.output_amount, Config.NATIVE_DECIMALS)
    result = {
        "token_amount": str(token_amount),
        "native_amount": str(native_amount),
        "source": quote.source.value,
        "best_effort": quote.is_best_effort,
    }

    print(f"Deposit {token_amount} token + {native_amount} {config.native_symbol}")
    print(f"Price source: {quote.source.value}")
    if quote.is_best_effort:
        print("WARNING: live price unavailable, reference price used")
    print("\n" + json.dumps(result, indent=2))


def cmd_check_balances(args):
    """Check every sub-wallet against the configured per-wallet amounts"""
    config = load_config()
    results = asyncio.run(LiquidityProvisioner(config).check_balances())

    print(f"Balances (need {config.native_per_wallet} {config.native_symbol} "
          f"and {config.token_per_wallet} token per wallet)")
    print("-" * 60)
    report = []
    for wallet, check in results:
        status = "OK" if check.sufficient else check.describe()
        print(f"  Wallet {wallet.index + 1} {wallet.address}: {status}")
        report.append({
            "wallet": wallet.index + 1,
            "address": wallet.address,
            "sufficient": check.sufficient,
            "shortfalls": [
                {"asset": s.asset, "deficit": str(s.deficit_amount)} for s in check.shortfalls
            ],
        })
    print("-" * 60)

    filepath = save_result(f"balances_{timestamp()}.json", report)
    print(f"\nSaved to {filepath}", file=sys.stderr)

    if not all(check.sufficient for _, check in results):
        sys.exit(1)


def cmd_distribute(args):
    """Fund sub-wallets from the main wallet"""
    config = load_config()
    count = len(config.sub_wallet_private_keys) or config.number_of_wallets

    print(f"About to send {config.native_per_wallet} {config.native_symbol} and "
          f"{config.token_per_wallet} token to each of {count} wallets")
    if not config.sub_wallet_private_keys:
        print("No SUB_WALLET_PRIVATE_KEYS set: new wallets will be created")
    if not args.yes:
        answer = input("Continue? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("Cancelled.")
            return

    transfers = asyncio.run(TokenDistributor(config).run())

    print("=" * 60)
    print("DISTRIBUTION COMPLETE")
    print("=" * 60)
    for transfer in transfers:
        print(f"\nWallet {transfer.index + 1}:")
        print(f"  Address:     {transfer.address}")
        print(f"  Native tx:   {transfer.native_tx}")
        print(f"  Token tx:    {transfer.token_tx}")
        if transfer.private_key:
            print(f"  Private Key: {transfer.private_key}")
    print("\n" + "=" * 60)

    filepath = save_result(f"distribution_{timestamp()}.json", [t.to_dict() for t in transfers])
    print(f"Saved to {filepath}", file=sys.stderr)
    if any(t.private_key for t in transfers):
        print("\nSECURITY: The saved file holds private keys, keep it safe!")


def cmd_wallet_generate(args):
    """Generate a new wallet"""
    result = generate_wallet(num_accounts=args.accounts)

    print("=" * 60)
    print("WALLET GENERATED")
    print("=" * 60)
    print("\nRecovery Phrase (12 words):")
    print(f"  {result['mnemonic']}\n")
    print("WARNING: Store this phrase securely and NEVER share it!")
    print("=" * 60)

    for acc in result["accounts"]:
        print(f"\nAccount {acc['index'] + 1}:")
        print(f"  Path:        {acc['path']}")
        print(f"  Address:     {acc['address']}")
        print(f"  Private Key: {acc['private_key']}")

    print("\n" + "=" * 60)
    keys = ",".join(acc["private_key"] for acc in result["accounts"])
    print(f"\nFor wallet.env:\nSUB_WALLET_PRIVATE_KEYS={keys}")

    save_data = {
        "mnemonic": result["mnemonic"],
        "accounts": result["accounts"],
        "warning": "NEVER share your mnemonic or private keys!",
    }
    filepath = save_result("wallet.json", save_data)
    print(f"Saved to {filepath}", file=sys.stderr)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="amm-provisioner",
        description="Provision AMM liquidity from many wallets at once",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  provision       Add liquidity from every sub-wallet
  quote           Show the deposit amounts and price source (read-only)
  check-balances  Check every sub-wallet is funded (read-only)
  distribute      Fund sub-wallets from the main wallet
  wallet          Generate new wallets

examples:
  amm-provisioner quote
  amm-provisioner check-balances
  amm-provisioner provision --concurrency 2 --group-delay 5
  amm-provisioner distribute --yes

configuration:
  settings     .env (RPC_URL, TOKEN_CONTRACT, SLIPPAGE_TOLERANCE, ...)
  wallets      SUB_WALLET_PRIVATE_KEYS and MAIN_WALLET_PRIVATE_KEY in wallet.env
  gas          gas_config.json
""",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # ── provision ──────────────────────────────────────────────────────
    provision_parser = subparsers.add_parser("provision", help="Add liquidity from every sub-wallet")
    provision_parser.add_argument("--concurrency", type=int, help="Wallets per group (default: CONCURRENCY_LIMIT)")
    provision_parser.add_argument("--group-delay", type=float, help="Seconds between groups (default: GROUP_DELAY_SECONDS)")
    provision_parser.set_defaults(func=cmd_provision)

    # ── quote / check-balances ─────────────────────────────────────────
    quote_parser = subparsers.add_parser("quote", help="Quote the configured deposit")
    quote_parser.set_defaults(func=cmd_quote)

    balances_parser = subparsers.add_parser("check-balances", help="Check sub-wallet funding")
    balances_parser.set_defaults(func=cmd_check_balances)

    # ── distribute ─────────────────────────────────────────────────────
    distribute_parser = subparsers.add_parser("distribute", help="Fund sub-wallets from the main wallet")
    distribute_parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    distribute_parser.set_defaults(func=cmd_distribute)

    # ── wallet ─────────────────────────────────────────────────────────
    wallet_parser = subparsers.add_parser("wallet", help="Wallet operations")
    wallet_sub = wallet_parser.add_subparsers(dest="wallet_type")

    wallet_gen_parser = wallet_sub.add_parser("generate", help="Generate new wallet")
    wallet_gen_parser.add_argument("--accounts", type=int, default=3, help="Number of accounts to derive")
    wallet_gen_parser.set_defaults(func=cmd_wallet_generate)

    return parser, wallet_parser


def main(argv=None):
    parser, wallet_parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "wallet" and not args.wallet_type:
        wallet_parser.print_help()
        sys.exit(1)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nCancelled.")
        sys.exit(1)
    except AMMError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
