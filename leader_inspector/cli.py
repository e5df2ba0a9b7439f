#!/usr/bin/env python3
import argparse
import logging
import sys

from solders.pubkey import Pubkey

from leader_inspector import config
from leader_inspector.annotations import LatencyRankClient, SkipBlameClient
from leader_inspector.inspector import ScheduleUnavailable, inspect_validator
from leader_inspector.logging_config import setup_logging
from leader_inspector.report import render_report
from leader_inspector.rpc_client import RpcError, SolanaRpcClient

EXIT_OK = 0
EXIT_DEPENDENCY_FAILURE = 1
EXIT_INTERRUPTED = 130  # 130 is the exit code for SIGINT


def validator_pubkey(value):
    """argparse type: a base58 Solana public key."""
    try:
        Pubkey.from_string(value)
    except Exception:  # solders raises its own parse errors for bad base58 or length
        raise argparse.ArgumentTypeError(f"Invalid validator pubkey: {value}")
    return value


def epoch_number(value):
    try:
        epoch = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid epoch number: {value}")
    if epoch < 0:
        raise argparse.ArgumentTypeError(f"Epoch must be non-negative: {value}")
    return epoch


def positive_number(kind):
    def parse(value):
        try:
            number = kind(value)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid value: {value}")
        if number <= 0:
            raise argparse.ArgumentTypeError(f"Must be positive: {value}")
        return number
    return parse


def build_parser():
    parser = argparse.ArgumentParser(
        prog='leader-inspector',
        description='Check which of a validator\'s leader slots were skipped or produced by someone else',
    )
    parser.add_argument('-v', '--validator', required=True, type=validator_pubkey,
                        help='Validator identity public key')
    parser.add_argument('-e', '--epoch', type=epoch_number, default=None,
                        help='Epoch to check the leader schedule for (default: current epoch)')
    parser.add_argument('--rpc-url', default=config.SOLANA_RPC_URL,
                        help=f'Solana RPC endpoint (default: {config.SOLANA_RPC_URL})')
    parser.add_argument('--all-blocks', action='store_true',
                        help='Report every leader block, not only blocks with slots we did not produce')
    parser.add_argument('--no-annotations', action='store_true',
                        help='Skip the skip blame and latency/rank lookups')
    parser.add_argument('--workers', type=positive_number(int), default=config.ANNOTATION_WORKERS,
                        help=f'Parallel annotation requests (default: {config.ANNOTATION_WORKERS})')
    parser.add_argument('--timeout', type=positive_number(float), default=config.REQUEST_TIMEOUT,
                        help=f'HTTP timeout in seconds (default: {config.REQUEST_TIMEOUT:g})')
    parser.add_argument('--no-color', action='store_true', help='Disable ANSI colors in the report')
    parser.add_argument('--no-progress', action='store_true', help='Disable progress bars')
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Logging level (default: INFO)')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logger = setup_logging('leader_inspector', level=getattr(logging, args.log_level))

    rpc = SolanaRpcClient(args.rpc_url, timeout=args.timeout)
    skip_blame = latency = None
    if not args.no_annotations:
        skip_blame = SkipBlameClient(timeout=args.timeout)
        latency = LatencyRankClient(timeout=args.timeout)

    try:
        report = inspect_validator(
            args.validator,
            rpc,
            epoch=args.epoch,
            skip_blame=skip_blame,
            latency=latency,
            show_all=args.all_blocks,
            max_workers=args.workers,
            show_progress=not args.no_progress,
        )
    except (RpcError, ScheduleUnavailable) as e:
        logger.error(f"Fatal error: {e}")
        return EXIT_DEPENDENCY_FAILURE
    except KeyboardInterrupt:
        print("\nProcessing interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED
    finally:
        rpc.close()
        for client in (skip_blame, latency):
            if client is not None:
                client.close()

    color = not args.no_color and sys.stdout.isatty()
    print(render_report(report, show_all=args.all_blocks, color=color))
    logger.info("Done checking slots!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
