"""Command line interface for the mbt tool."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List
import json
import sys

from .config_loader import BuildConfig
from .console import Console
from .descriptor import MTA, DescriptorError, load_descriptor
from .location import Location
from .manifest import ManifestError, set_manifest_desc
from .modules_deps import ModulesOrderError, get_modules_order
from .version import get_version


def _collect_modules(values: List[str]) -> List[str]:
    modules: List[str] = []
    for value in values:
        if not value:
            continue
        modules.extend(part.strip() for part in value.split(",") if part.strip())
    return modules


def _add_source_argument(parser: ArgumentParser) -> None:
    parser.add_argument("-s", "--source", default=".", help="Project directory holding the MTA descriptor")
    parser.add_argument("-d", "--descriptor", help="Descriptor file name (default: mta.yaml)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="mbt", description="MTA build planner and manifest generator")
    subparsers = parser.add_subparsers(dest="command", required=True)

    order_parser = subparsers.add_parser("order", help="Print the module build order")
    _add_source_argument(order_parser)
    order_parser.add_argument(
        "-m",
        "--module",
        dest="modules",
        action="append",
        default=[],
        help="Restrict the order to these modules and their build requirements (comma-separated)",
    )
    order_parser.add_argument("--json", action="store_true", help="Print the order as a JSON list")

    manifest_parser = subparsers.add_parser("manifest", help="Generate META-INF/MANIFEST.MF")
    _add_source_argument(manifest_parser)
    manifest_parser.add_argument("-t", "--target", help="Target directory (default: the source directory)")
    manifest_parser.add_argument(
        "-m",
        "--module",
        dest="modules",
        action="append",
        default=[],
        help="Modules to describe (comma-separated); omit to describe all",
    )
    manifest_parser.add_argument("--only-modules", action="store_true", help="Leave out required dependencies and resources")

    modules_parser = subparsers.add_parser("modules", help="List the modules of the MTA descriptor")
    _add_source_argument(modules_parser)

    subparsers.add_parser("version", help="Print the tool version")

    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)

    if args.command == "version":
        print(get_version().cli_version)
        return 0

    source = Path(args.source).resolve()
    config = BuildConfig.from_directory(
        source,
        overrides={
            "descriptor": args.descriptor,
            "target": getattr(args, "target", None),
            "log_level": "debug" if args.verbose else None,
            "only_modules": True if getattr(args, "only_modules", False) else None,
        },
    )
    console = Console(config.log_level)
    location = Location(
        source=source,
        target=Path(config.target).resolve() if config.target else None,
        descriptor=config.descriptor,
    )

    try:
        mta = load_descriptor(location.get_descriptor_path())
        if args.command == "order":
            return _handle_order(args, mta, console)
        if args.command == "manifest":
            return _handle_manifest(args, mta, location, config, console)
        if args.command == "modules":
            return _handle_modules(mta)
    except (DescriptorError, FileNotFoundError, ModulesOrderError, ManifestError) as exc:
        console.error(_describe_error(exc))
        return 1
    raise ValueError(f"Unknown command: {args.command}")


def _describe_error(exc: BaseException) -> str:
    messages = [str(exc)]
    cause = exc.__cause__
    while cause is not None:
        messages.append(str(cause))
        cause = cause.__cause__
    return ": ".join(messages)


def _handle_order(args: Namespace, mta: MTA, console: Console) -> int:
    order = get_modules_order(mta, _collect_modules(args.modules) or None, console=console)
    if args.json:
        print(json.dumps(order))
    else:
        for name in order:
            print(name)
    return 0


def _handle_manifest(args: Namespace, mta: MTA, location: Location, config: BuildConfig, console: Console) -> int:
    manifest_path = set_manifest_desc(
        location,
        location,
        mta.modules,
        mta.resources,
        _collect_modules(args.modules),
        config.only_modules,
        console=console,
    )
    print(manifest_path)
    return 0


def _handle_modules(mta: MTA) -> int:
    for name in mta.module_names():
        print(name)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
