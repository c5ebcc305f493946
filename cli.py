import argparse
import asyncio
import logging
import sys
import traceback

from core.container import create_container
from core.environment.providers import EnvironmentProvider
from core.logging.providers import LOGGER_NAME
from migration.entities import MigrationOptions, MigrationSummary
from migration.usecases import RunMigrationUseCase


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Reward escrow migration")
    p.add_argument("-n", "--network", type=str.lower, default=None,
                   help="The network to run off (default: NETWORK or mainnet)")
    p.add_argument("-f", "--use-fork", action="store_true", default=None,
                   help="Use a local fork")
    p.add_argument("-k", "--private-key", default=None,
                   help="Private key to use to sign txs")
    p.add_argument("-p", "--provider-url", default=None,
                   help="The http provider to use for communicating with the blockchain")
    p.add_argument("-r", "--dry-run", action="store_true",
                   help="Run as a dry-run")
    p.add_argument("--balance-page-size", type=int, default=None,
                   help="Accounts per balance-migration transaction")
    p.add_argument("--import-page-size", type=int, default=None,
                   help="Vesting entries per import transaction")
    p.add_argument("--debug", action="store_true",
                   help="Enable debug logging")
    return p


async def run(args: argparse.Namespace) -> MigrationSummary:
    """
    Resolve the use case from a fresh container and run it once.

    Parameters
    ----------
    args : argparse.Namespace
        Parsed command line

    Returns
    -------
    MigrationSummary
        Run summary
    """
    environment = EnvironmentProvider(
        network=args.network,
        use_fork=args.use_fork,
        private_key=args.private_key,
        provider_url=args.provider_url,
        log_level="DEBUG" if args.debug else None,
    )
    options = MigrationOptions(
        dry_run=args.dry_run,
        balance_page_size=args.balance_page_size,
        import_page_size=args.import_page_size,
    )

    container = create_container(environment=environment)
    try:
        async with container() as request_container:
            use_case = await request_container.get(RunMigrationUseCase, component="migration")
            return await use_case(options)
    finally:
        await container.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    log = logging.getLogger(LOGGER_NAME)

    try:
        summary = asyncio.run(run(args))
    except Exception as e:
        log.error(f"Migration failed: {e}")
        traceback.print_exc(file=sys.stderr)
        return 1

    print(summary.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
