from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import Optional, Sequence

import uvicorn

from smithlint.build import analyze_hang, plan_build, run_build
from smithlint.compliance import (
	check_compliance,
	compliance_exit_code,
	compliance_json,
	load_history,
	record_history,
	report_exit_code,
	save_report,
	score_result,
)
from smithlint.config import SmithConfig, load_config
from smithlint.errors import EmptyTaskError, SmithError
from smithlint.patterns import scan_exit_code, validate_path
from smithlint.router import generate_reading_plan
from smithlint.rules import load_rules
from smithlint.spm import analyze_package, check_platform_dependencies, spm_exit_code
from smithlint.summarize import (
	summarize_build,
	summarize_compliance,
	summarize_hang,
	summarize_plan,
	summarize_platform,
	summarize_scan,
	summarize_score,
	summarize_spm,
	summarize_spm_quick,
	summarize_tool_check,
)
from smithlint.toolchain import check_format, check_syntax

log = logging.getLogger("smith.cli")


def _print_json(data) -> None:
	print(json.dumps(data, indent=2))


def cmd_validate(args: argparse.Namespace, config: SmithConfig) -> int:
	report = validate_path(args.path, rules=load_rules(config), skip_dirs=config.skip_dirs)
	if args.json:
		_print_json(report.model_dump())
	else:
		print(summarize_scan(report))
	return scan_exit_code(report)


def cmd_compliance(args: argparse.Namespace, config: SmithConfig) -> int:
	result = check_compliance(args.path, skip_dirs=config.compliance_skip_dirs)
	if args.json:
		_print_json(compliance_json(result))
	else:
		print(summarize_compliance(result, strict=args.strict))
	return compliance_exit_code(result, strict=args.strict)


def cmd_report(args: argparse.Namespace, config: SmithConfig) -> int:
	result = check_compliance(args.path, skip_dirs=config.compliance_skip_dirs)
	score = score_result(os.path.abspath(args.path), result)
	history = None
	if args.history:
		saved = record_history(args.path, score)
		log.info("History saved to %s", saved)
		history = load_history(args.path)
	print(summarize_score(score, result, history))
	if args.save:
		path = save_report(args.save, score, result)
		print(f"\nReport saved to {path}")
	return report_exit_code(score)


def cmd_route(args: argparse.Namespace, config: SmithConfig) -> int:
	try:
		plan = generate_reading_plan(" ".join(args.task), docs_dir=args.docs)
	except EmptyTaskError as e:
		args.print_usage(sys.stderr)
		print(f"error: {e}", file=sys.stderr)
		return e.exit_code
	if args.json:
		_print_json(plan.model_dump())
	else:
		print(summarize_plan(plan))
	return 0


def cmd_spm(args: argparse.Namespace, config: SmithConfig) -> int:
	report = analyze_package(args.path, max_imports=config.max_imports, system_modules=config.system_modules)
	if args.json:
		_print_json(report.model_dump())
	elif args.quick:
		print(summarize_spm_quick(report))
	else:
		print(summarize_spm(report, verbose=args.verbose_report))
	return spm_exit_code(report)


def cmd_platform_deps(args: argparse.Namespace, config: SmithConfig) -> int:
	report = check_platform_dependencies(args.path, args.platform)
	print(summarize_platform(report))
	return 0 if report.ok else 1


def cmd_build(args: argparse.Namespace, config: SmithConfig) -> int:
	timeout = args.timeout or config.build_timeout
	plan = plan_build(os.path.abspath(args.path), tool_timeout=config.tool_timeout)
	log.info("Building with timeout %ss: %s", timeout, " ".join(plan.command))
	result = run_build(plan, timeout=timeout, cwd=os.path.abspath(args.path))
	print(summarize_build(result))
	return result.exit_code


def cmd_hang(args: argparse.Namespace, config: SmithConfig) -> int:
	report = analyze_hang(
		args.file,
		workspace=args.workspace,
		timeout=args.timeout or config.hang_timeout,
		derived_data=str(config.derived_data_dir),
		derived_data_limit_mb=config.derived_data_limit_mb,
	)
	print(summarize_hang(report))
	return 1 if report.isolated_ok is False else 0


def cmd_syntax(args: argparse.Namespace, config: SmithConfig) -> int:
	report = check_syntax(args.path, timeout=config.tool_timeout)
	print(summarize_tool_check(report))
	return 1 if report.failed else 0


def cmd_format(args: argparse.Namespace, config: SmithConfig) -> int:
	report = check_format(args.path, rules=load_rules(config), config_file=args.format_config)
	print(summarize_tool_check(report))
	return 1 if report.failed else 0


def cmd_serve(args: argparse.Namespace, config: SmithConfig) -> int:
	if args.config:
		# api loads its own config at import time
		os.environ["SMITH_CONFIG"] = os.path.abspath(args.config)
	uvicorn.run("api:app", host=args.host, port=args.port, reload=args.reload)
	return 0


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="smith", description="Smith framework checks for Swift/TCA projects")
	parser.add_argument("--config", help="Path to a YAML or JSON config file")
	parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (-vv for debug)")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pv = sub.add_parser("validate", help="Check Swift files against the TCA pattern rules")
	pv.add_argument("path", nargs="?", default=".", help="Swift file or directory")
	pv.add_argument("--json", action="store_true")
	pv.set_defaults(func=cmd_validate)

	pc = sub.add_parser("compliance", help="Run the project compliance rules")
	pc.add_argument("path", nargs="?", default=".")
	pc.add_argument("--strict", action="store_true", help="Treat warnings as errors")
	pc.add_argument("--json", action="store_true")
	pc.set_defaults(func=cmd_compliance)

	pr = sub.add_parser("report", help="Score and grade project compliance")
	pr.add_argument("path", nargs="?", default=".")
	pr.add_argument("--save", metavar="FILE", help="Write the report as JSON")
	pr.add_argument("--history", action="store_true", help="Record the score and show the trend")
	pr.set_defaults(func=cmd_report)

	pt = sub.add_parser("route", help="Recommend documentation for a task")
	pt.add_argument("task", nargs="+", help="Task description")
	pt.add_argument("--docs", default=".", help="Directory holding DISCOVERY-*.md case studies")
	pt.add_argument("--json", action="store_true")
	pt.set_defaults(func=cmd_route, print_usage=pt.print_usage)

	ps = sub.add_parser("spm", help="Validate Swift package structure")
	ps.add_argument("path", nargs="?", default=".")
	ps.add_argument("--verbose", dest="verbose_report", action="store_true", help="List imports of deep files")
	ps.add_argument("--quick", action="store_true", help="Minimal output")
	ps.add_argument("--json", action="store_true")
	ps.set_defaults(func=cmd_spm)

	pp = sub.add_parser("platform-deps", help="Check platform-conditioned package dependencies")
	pp.add_argument("path", nargs="?", default=".")
	pp.add_argument("--platform", default="visionOS")
	pp.set_defaults(func=cmd_platform_deps)

	pb = sub.add_parser("build", help="Build the smallest target with a hang watchdog")
	pb.add_argument("path", nargs="?", default=".")
	pb.add_argument("--timeout", type=int, help="Seconds before the build is considered hung")
	pb.set_defaults(func=cmd_build)

	ph = sub.add_parser("hang", help="Analyze a file suspected of hanging the build")
	ph.add_argument("file")
	ph.add_argument("--workspace", default=".")
	ph.add_argument("--timeout", type=int)
	ph.set_defaults(func=cmd_hang)

	py = sub.add_parser("syntax", help="Typecheck Swift files one by one")
	py.add_argument("path", nargs="?", default=".")
	py.set_defaults(func=cmd_syntax)

	pf = sub.add_parser("format", help="swift-format lint plus pattern rules")
	pf.add_argument("path", nargs="?", default=".")
	pf.add_argument("--format-config", help="swift-format configuration file")
	pf.set_defaults(func=cmd_format)

	pz = sub.add_parser("serve", help="Run FastAPI server")
	pz.add_argument("--host", default="127.0.0.1")
	pz.add_argument("--port", type=int, default=8000)
	pz.add_argument("--reload", action="store_true")
	pz.set_defaults(func=cmd_serve)

	return parser


def _setup_logging(verbosity: int) -> None:
	env_level = os.environ.get("SMITH_LOG_LEVEL")
	if env_level and not verbosity:
		level = getattr(logging, env_level.upper(), logging.WARNING)
	else:
		level = [logging.WARNING, logging.INFO, logging.DEBUG][min(verbosity, 2)]
	logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
	parser = build_parser()
	args = parser.parse_args(argv)
	_setup_logging(args.verbose)
	try:
		config = load_config(args.config)
		return args.func(args, config)
	except SmithError as e:
		log.debug("Command failed", exc_info=True)
		print(f"error: {e}", file=sys.stderr)
		return e.exit_code


if __name__ == "__main__":
	sys.exit(main())
