import argparse
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError
from tqdm import tqdm

from . import __version__
from .config import DEFAULT_THREADS, ScanConfig, get_caller_arn, get_s3_client, get_session
from .errors import EntrailsError
from .listing import DEFAULT_SHARD_DEPTH
from .report import err_line, info_line, ok_line, atomic_write_json, print_summary, to_json, write_text
from .scanner import TrailScanner

BANNER = r"""
▓█████  ███▄    █ ▄▄▄█████▓ ██▀███   ▄▄▄       ██▓ ██▓      ██████
▓█   ▀  ██ ▀█   █ ▓  ██▒ ▓▒▓██ ▒ ██▒▒████▄    ▓██▒▓██▒    ▒██    ▒
▒███   ▓██  ▀█ ██▒▒ ▓██░ ▒░▓██ ░▄█ ▒▒██  ▀█▄  ▒██▒▒██░    ░ ▓██▄
▒▓█  ▄ ▓██▒  ▐▌██▒░ ▓██▓ ░ ▒██▀▀█▄  ░██▄▄▄▄██ ░██░▒██░      ▒   ██▒
░▒████▒▒██░   ▓██░  ▒██▒ ░ ░██▓ ▒██▒ ▓█   ▓██▒░██░░██████▒▒██████▒▒
░░ ▒░ ░░ ▒░   ▒ ▒   ▒ ░░   ░ ▒▓ ░▒▓░ ▒▒   ▓▒█░░▓  ░ ▒░▓  ░▒ ▒▓▒ ▒ ░
 ░ ░  ░░ ░░   ░ ▒░    ░      ░▒ ░ ▒░  ▒   ▒▒ ░ ▒ ░░ ░ ▒  ░░ ░▒  ░ ░
   ░      ░   ░ ░   ░        ░░   ░   ░   ▒    ▒ ░  ░ ░   ░  ░  ░
   ░  ░         ░             ░           ░  ░ ░      ░  ░      ░
"""

HELP = "Analyze CloudTrail logs in S3 for the successful actions of one identity."


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='entrails', description=HELP)
    parser.add_argument('--bucket', required=True, help='The S3 bucket name containing CloudTrail logs')
    parser.add_argument('--prefix', required=True, help='The S3 prefix for CloudTrail logs (e.g. AWSLogs/<acc-id>/CloudTrail/)')
    parser.add_argument('--profile', help='The AWS profile to use (default credential chain if omitted)')
    parser.add_argument('--region', help='AWS region for the S3 and STS clients')
    parser.add_argument('--threads', type=int, default=DEFAULT_THREADS, help='Number of workers for listing shards and processing logs')
    parser.add_argument('--identity', help='Only report actions of this ARN (default: caller identity)')
    parser.add_argument('--depth', type=int, default=DEFAULT_SHARD_DEPTH, help='How many prefix levels to explore when sharding the listing')
    parser.add_argument('--output', help='Write results to this file')
    parser.add_argument('--out-json', dest='out_json', help='Write full JSON results to this path')
    parser.add_argument('--no-progress', action='store_true', default=False, help='Do not show progress bars')
    parser.add_argument('-v', '--verbose', action='store_true', default=False, help='Log every skipped object')
    parser.add_argument('--version', action='version', version=f"%(prog)s {__version__}")
    return parser


def run(args) -> int:
    session = get_session(args.profile, args.region)

    identity = args.identity
    if not identity:
        print(info_line("Retrieving caller identity..."))
        identity = get_caller_arn(session)

    config = ScanConfig(
        bucket=args.bucket,
        prefix=args.prefix,
        identity=identity,
        threads=args.threads,
        shard_depth=args.depth,
        profile=args.profile,
        region=args.region,
        output=args.output,
        out_json=args.out_json,
    )
    print(info_line(f"Using identity: {config.identity}"))

    progress_factory = None if args.no_progress else tqdm
    scanner = TrailScanner(config, get_s3_client(session, config.threads), progress_factory=progress_factory)

    print(info_line("Discovering shard prefixes..."))
    result = scanner.run()
    print_summary(result)

    if config.output:
        write_text(config.output, result)
        print(ok_line(f"Results written to {config.output}"))
    if config.out_json:
        atomic_write_json(config.out_json, to_json(result))
        print(ok_line(f"JSON results written to {config.out_json}"))
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    # botocore is very chatty at DEBUG
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)

    print(BANNER)
    try:
        return run(args)
    except (EntrailsError, ClientError, BotoCoreError) as e:
        print(err_line(f"Error: {e}"), file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
