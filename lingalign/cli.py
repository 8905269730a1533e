"""
cli.py - Command line front-end for lingalign.

Reads texts from a file, runs a matching call and prints the report.

Usage:
    lingalign texts.txt
    lingalign texts.txt --type lsm --metric canberra cosine
    lingalign dialogue.txt --comp sequential --group-file speakers.txt
    lingalign texts.csv --group-file pairs.txt --group-file roles.txt --all-levels
    lingalign texts.txt --comp auto --profiles profiles.csv --type lsm
"""

from pathlib import Path
from typing import List, Optional
import argparse
import csv
import sys

from .core import LingMatcher
from .errors import LingalignError
from .resources import BaselineProfiles


def read_labels(path: str) -> List[str]:
    """One group label per non-empty line."""
    with open(path, encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


def read_profiles(path: str) -> BaselineProfiles:
    """
    Profiles from a delimited file: a header row of column names, then one
    row per profile with its name in the first field.
    """
    delimiter = "," if Path(path).suffix.lower() == ".csv" else "\t"
    with open(path, encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f, delimiter=delimiter))
    header, body = rows[0], [r for r in rows[1:] if r]
    names = [r[0] for r in body]
    values = [[float(v) for v in r[1:]] for r in body]
    return BaselineProfiles(tuple(names), tuple(header[1:]), values)


def parse_comp(value: Optional[str]):
    """Keyword, text file, or comma-separated row positions ("0,2")."""
    if value is None:
        return None
    parts = [p.strip() for p in value.split(",")]
    if all(p.isdigit() for p in parts):
        return [int(p) for p in parts]
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lingalign",
        description="Measure linguistic similarity between texts")
    parser.add_argument('input',
                        help='Texts to compare (.txt: one per line; .csv/.tsv: first text column)')
    parser.add_argument('--comp', default=None,
                        help='Comparison: pairwise, sequential, mean, auto, a profile name, '
                             'a text file, or comma-separated row positions')
    parser.add_argument('--group-file', action='append', default=[], dest='group_files',
                        help='File with one group label per line (repeat for several levels)')
    parser.add_argument('--order-file', default=None,
                        help='File with one row position per line giving the row order')
    parser.add_argument('--profiles', default=None,
                        help='Delimited file of named baseline profiles')
    parser.add_argument('--metric', nargs='+', default=None,
                        help='Metric name(s): jaccard, euclidean, canberra, cosine, pearson, or all')
    parser.add_argument('--type', default=None,
                        help='Preset: lsm (style matching) or lsa (content matching)')
    parser.add_argument('--weight', default=None,
                        choices=['freq', 'count', 'binary', 'log', 'tfidf'],
                        help='Term weighting')
    parser.add_argument('--mean', action='store_true',
                        help='Collapse pairwise comparisons to each row\'s mean')
    parser.add_argument('--all-levels', action='store_true',
                        help='Compare at every level of several grouping files')
    parser.add_argument('--drop', action='store_true',
                        help='Remove all-zero columns after processing')
    parser.add_argument('--max-rows', type=int, default=10,
                        help='Rows shown per result table (default: 10)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Print progress')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    groups = [read_labels(p) for p in args.group_files]
    group = None
    if len(groups) == 1:
        group = groups[0]
    elif groups:
        group = {f"g{i + 1}": labels for i, labels in enumerate(groups)}
    order = [int(v) for v in read_labels(args.order_file)] if args.order_file else None

    options = {}
    if args.metric:
        options['metric'] = args.metric
    if args.weight:
        options['weight'] = args.weight
    if args.mean:
        options['mean'] = True

    try:
        profiles = read_profiles(args.profiles) if args.profiles else None
        matcher = LingMatcher(profiles=profiles, verbose=args.verbose)
        result = matcher.match(args.input, parse_comp(args.comp), group=group, order=order,
                               drop=args.drop, all_levels=args.all_levels, type=args.type,
                               **options)
    except (LingalignError, OSError) as e:
        print(f"lingalign: error: {e}", file=sys.stderr)
        return 1

    print(result.report(max_rows=args.max_rows))
    return 0


if __name__ == "__main__":
    sys.exit(main())
