"""Entry point: python -m typo_correct"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import yaml

from typo_correct.core.errors import TypoCorrectError
from typo_correct.core.pass_base import registry
from typo_correct.core.pipeline import CorrectionPipeline
from typo_correct.core.profile_source import default_source
from typo_correct.core.resolver import ProfileResolver
from typo_correct.core.style_mapper import materialize_lenient
from typo_correct.core.user_config import UserConfig

_log = logging.getLogger("typo_correct")


# ---------------------------------------------------------------------------
# Shared settings
# ---------------------------------------------------------------------------


def _settings(args: argparse.Namespace) -> tuple[UserConfig, list[str] | None]:
    config = UserConfig.load(args.config) if args.config else UserConfig()
    if args.profile:
        config.language_profile = args.profile
    if args.passes:
        ids = [p.strip() for p in args.passes.split(",") if p.strip()]
    else:
        ids = config.enabled_pass_ids(registry.all_ids())
    return config, ids


def _resolver(args: argparse.Namespace) -> ProfileResolver:
    return ProfileResolver(default_source(args.profile_dir or ()))


def _read_input(path: str | None) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def _report_diagnostics(diagnostics) -> None:
    for diag in diagnostics:
        _log.warning("%s: %s %s", diag.pass_id, diag.kind.value, diag.detail)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _cmd_correct(args: argparse.Namespace) -> int:
    config, ids = _settings(args)
    profile = _resolver(args).resolve(config.language_profile, config.profile_overrides)
    text = _read_input(args.file)

    result = CorrectionPipeline().run(text, profile, ids)
    _report_diagnostics(result.diagnostics)
    sys.stdout.write(result.text)

    if args.spans:
        if config.role_map:
            styles, _ = materialize_lenient(result.spans, config.role_map)
            rows = [
                {"start": s.span.start, "end": s.span.end, "role": s.role_id, "style": s.style_name}
                for s in styles
            ]
        else:
            rows = [
                {"start": a.span.start, "end": a.span.end, "role": a.role_id}
                for a in result.spans
            ]
        sys.stderr.write(yaml.safe_dump(rows, allow_unicode=True, sort_keys=False))
    return 0


def _cmd_batch(args: argparse.Namespace) -> int:
    from typo_correct.batch import correct_frame, read_table, write_table

    config, ids = _settings(args)
    profile = _resolver(args).resolve(config.language_profile, config.profile_overrides)
    df = read_table(args.csv, encoding=args.encoding, delimiter=args.delimiter)
    corrected, report = correct_frame(
        df, profile, columns=args.column or None, enabled_pass_ids=ids
    )

    source = Path(args.csv)
    output = Path(args.output) if args.output else source.with_name(f"{source.stem}.corrected.csv")
    write_table(corrected, output)
    print(f"{int(report['changed'].sum()) if not report.empty else 0} cell(s) changed -> {output}")

    if args.report:
        write_table(report, args.report)
    failed = report[report["error"] != ""] if not report.empty else report
    return 1 if len(failed) else 0


def _cmd_profiles(args: argparse.Namespace) -> int:
    for info in default_source(args.profile_dir or ()).list_profiles():
        print(f"{info.id:<8} {info.label_en:<28} {info.path or ''}")
    return 0


def _cmd_passes(args: argparse.Namespace) -> int:
    for cls in registry.all_passes():
        print(f"{cls.rank:>4}  {cls.pass_id:<28} {cls.mode.value:<20} {cls.name}")
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="typo-correct", description="Locale-aware typographic correction"
    )
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)"
    )
    parser.add_argument(
        "--profile-dir",
        action="append",
        metavar="DIR",
        help="Extra directory of lang-<id>.yml profiles (searched before the built-in ones)",
    )

    settings = argparse.ArgumentParser(add_help=False)
    settings.add_argument(
        "--profile", help="Language profile id (default: from --config, else fr-FR)"
    )
    settings.add_argument("--passes", help="Comma-separated pass ids to run (default: all)")
    settings.add_argument("--config", metavar="FILE", help="User configuration YAML")

    sub = parser.add_subparsers(dest="command", required=True)

    p_correct = sub.add_parser("correct", parents=[settings], help="Correct a text file or stdin")
    p_correct.add_argument("file", nargs="?", help="UTF-8 text file (default: stdin)")
    p_correct.add_argument(
        "--spans", action="store_true", help="Write the style spans as YAML to stderr"
    )
    p_correct.set_defaults(func=_cmd_correct)

    p_batch = sub.add_parser("batch", parents=[settings], help="Correct the text columns of a CSV")
    p_batch.add_argument("csv", help="CSV file")
    p_batch.add_argument(
        "--column", action="append", help="Column to correct (repeatable; default: all)"
    )
    p_batch.add_argument("--output", help="Output CSV (default: <name>.corrected.csv)")
    p_batch.add_argument("--report", help="Write the per-cell report to this CSV")
    p_batch.add_argument("--encoding", help="Input encoding (default: detected)")
    p_batch.add_argument("--delimiter", help="Input delimiter (default: detected)")
    p_batch.set_defaults(func=_cmd_batch)

    p_profiles = sub.add_parser("profiles", help="List available language profiles")
    p_profiles.set_defaults(func=_cmd_profiles)

    p_passes = sub.add_parser("passes", help="List correction passes in run order")
    p_passes.set_defaults(func=_cmd_passes)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    level = logging.WARNING
    if args.verbose == 1:
        level = logging.INFO
    elif args.verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")

    try:
        return args.func(args)
    except (TypoCorrectError, KeyError, OSError) as exc:
        print(f"[typo-correct] {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
