from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from .bindgen import BINDGEN, run_bindgen
from .config import STRATEGIES, STRATEGY_TOOL, ProbeConfig, load_probe_config
from .errors import HipSysBuildError, PathNotFoundError
from .features import MODES
from .hipconfig import HIPCONFIG, SubprocessToolRunner
from .paths import resolve_candidates
from .probe import detect_versions, run_probe


def _config_from_args(args: argparse.Namespace) -> ProbeConfig:
    return load_probe_config(
        environ=os.environ,
        config_path=Path(args.config).resolve() if args.config else None,
        overrides={
            "mode": args.mode,
            "strategy": args.strategy,
            "default_path": args.default_path,
        },
    )


def command_probe(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    outcome = run_probe(config)

    if args.verbose:
        print(f"Candidates: {', '.join(str(path) for path in outcome.candidates) or '<none>'}", file=sys.stderr)
        for root, reason in outcome.rejected:
            print(f"  rejected {root}: {reason}", file=sys.stderr)
        if outcome.linked:
            print(f"Selected ROCm installation: {outcome.root} (library dir '{outcome.library_dir}')", file=sys.stderr)
        else:
            print("No ROCm installation found; nothing to link.", file=sys.stderr)

    rendered = outcome.directives.render()
    if args.output:
        output_path = Path(args.output).resolve()
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered, encoding="utf-8")
    else:
        sys.stdout.write(rendered)
    return 0


def command_detect(args: argparse.Namespace) -> int:
    config = _config_from_args(args)
    if args.root:
        root = Path(args.root)
    else:
        candidates = resolve_candidates(config.env_vars, config.default_path, config.marker, config.environ)
        if not candidates:
            raise PathNotFoundError(
                f"No ROCm installation found under {', '.join(config.env_vars)} or '{config.default_path}'."
            )
        root = candidates[0]

    runner = SubprocessToolRunner(config.tool) if config.strategy == STRATEGY_TOOL else None
    detected = detect_versions(root, config.strategy, runner)
    report = detected.as_dict()
    report["strategy"] = config.strategy
    print(json.dumps(report, indent=2, sort_keys=True))
    return 0


def command_bindgen(args: argparse.Namespace) -> int:
    crate_dirs = [Path(value).resolve() for value in args.crate_dir]
    context, jobs = run_bindgen(
        crate_dirs,
        hipconfig=SubprocessToolRunner(args.tool),
        generator=SubprocessToolRunner(args.generator),
    )
    print(f"rocm path: {context.rocm_path}", file=sys.stderr)
    print(f"hip include path: {context.include_path}", file=sys.stderr)
    print(f"hip patch: {context.hip_patch}", file=sys.stderr)
    for job in jobs:
        print(f"Generated bindings: {job.output_path}", file=sys.stderr)
    return 0


def _add_probe_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to probe config JSON.")
    parser.add_argument("--mode", choices=MODES, help="Feature selection mode (default: strict).")
    parser.add_argument("--strategy", choices=STRATEGIES, help="Version discovery strategy (default: header).")
    parser.add_argument("--default-path", help="Default ROCm installation directory (default: /opt/rocm).")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hip_sys_build",
        description="ROCm/HIP discovery and link directive generation for the HIP binding crate.",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    probe = sub.add_parser("probe", help="Resolve the ROCm installation and print cargo build directives.")
    _add_probe_options(probe)
    probe.add_argument("--output", help="Write directives to path instead of stdout.")
    probe.add_argument("--verbose", action="store_true", help="Print the candidate walk to stderr.")
    probe.set_defaults(func=command_probe)

    detect = sub.add_parser("detect", help="Print the ROCm/HIP versions found under an installation as JSON.")
    _add_probe_options(detect)
    detect.add_argument("--root", help="Installation root (default: first resolved candidate).")
    detect.set_defaults(func=command_detect)

    bindgen = sub.add_parser("bindgen", help="Generate HIP bindings for crate directories.")
    bindgen.add_argument(
        "--crate-dir",
        action="append",
        required=True,
        help="Crate directory containing wrapper.h and src/bindings (repeatable).",
    )
    bindgen.add_argument("--generator", default=BINDGEN, help="Binding generator executable (default: bindgen).")
    bindgen.add_argument("--tool", default=HIPCONFIG, help="HIP configuration tool (default: hipconfig).")
    bindgen.set_defaults(func=command_bindgen)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except HipSysBuildError as exc:
        print(f"hip_sys_build error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
