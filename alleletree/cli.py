"""alleletree: distance matrices and UPGMA trees from allele profiles.

Command line entry point. The tree is written to stdout; progress and
errors go to stderr.
"""

import argparse
import sys

import pandas as pd
from rich.console import Console

from alleletree.config_utils import ClusteringConfig, print_config_summary
from alleletree.core.errors import AlleleTreeError
from alleletree.core.input import read_profile_json, read_profiles
from alleletree.main import DistanceMatrix

console = Console(stderr=True)

DELIMITER_CHOICES = {'tab': '\t', '\t': '\t', ',': ',', ' ': ' '}


def _delimiter(value):
    try:
        return DELIMITER_CHOICES[value]
    except KeyError:
        raise argparse.ArgumentTypeError("delimiter must be one of: tab, ',', ' '")


def build_parser():
    parser = argparse.ArgumentParser(
        prog='alleletree',
        description='Calculate distance based on input allele profiles and cluster samples',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  alleletree upgma profiles.tsv
  alleletree upgma profiles.csv --delimiter , --distance normalized
  alleletree upgma profiles.tsv --max-height 200 --matrix-out distances.tsv
        """,
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    upgma = subparsers.add_parser('upgma', help='Cluster samples using UPGMA algorithm')
    upgma.add_argument(
        'profile',
        type=str,
        help='Profile file (delimited text with a header row, or .json)',
    )
    upgma.add_argument(
        '--delimiter',
        type=_delimiter,
        default='\t',
        help='Character used to separate columns in profile file (default: tab)',
    )
    upgma.add_argument(
        '--distance',
        choices=['absolute', 'normalized'],
        default='absolute',
        help='Distance measure to use when constructing distance matrix (default: absolute)',
    )
    upgma.add_argument(
        '--max-height',
        type=float,
        default=0,
        help='Maximum tree height to allow before branch lengths are capped. 0 is unlimited (default: 0)',
    )
    upgma.add_argument(
        '--legacy-normalized',
        action='store_true',
        help='Normalized distance only: count a locus as compared when either allele is missing',
    )
    upgma.add_argument(
        '--matrix-out',
        type=str,
        default=None,
        help='Write the distance matrix, in tree leaf order, to this TSV file',
    )
    upgma.add_argument(
        '--nproc',
        type=int,
        default=4,
        help='Number of threads for distance computation (default: 4)',
    )
    upgma.add_argument(
        '--quiet',
        action='store_true',
        help='Only print the tree',
    )
    return parser


def do_upgma(args):
    config = ClusteringConfig(
        distance=args.distance,
        algorithm='upgma',
        max_tree_height=args.max_height,
        legacy_normalized=args.legacy_normalized,
        nproc=args.nproc,
        verbose=not args.quiet,
    )
    if config.verbose:
        print_config_summary(config)

    if args.profile.endswith('.json'):
        profiles = read_profile_json(args.profile)
    else:
        profiles = read_profiles(args.profile, delimiter=args.delimiter)

    result = DistanceMatrix.from_profiles(profiles, config=config).run()
    print(result.tree)

    if args.matrix_out:
        df = pd.DataFrame(result.matrix, index=list(result.samples), columns=list(result.samples))
        df.to_csv(args.matrix_out, sep='\t')
        if config.verbose:
            console.print(f'  [green]✓[/green] Distance matrix saved to {args.matrix_out}')
    return result


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        if args.command == 'upgma':
            do_upgma(args)
        return 0
    except (AlleleTreeError, ValueError, OSError) as e:
        console.print(f"\n✗ alleletree failed: {e}", style="bold red")
        return 1


if __name__ == '__main__':
    sys.exit(main())
