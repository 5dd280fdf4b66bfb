"""
CLI entry point for dommerger.

Usage:
    dommerger merge <mod.dm|dir>...         Merge mods into one .dm file
    dommerger scan <mod.dm|dir>...          Show what each mod defines
    dommerger conflicts <mod.dm|dir>...     Show id collisions without writing
    dommerger init-config [path]            Write a default config file
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dommerger import __version__
from dommerger.config import ConfigError, MergeConfig, sanitize_mod_name, write_default_config
from dommerger.core.result import MergeError
from dommerger.sources import MOD_EXTENSION, ModSource


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )


def _log_level(args, default: str = "WARNING") -> str:
    if getattr(args, "verbose", False):
        return "DEBUG"
    if getattr(args, "quiet", False):
        return "ERROR"
    return default


def collect_sources(paths: List[str]) -> List[ModSource]:
    """Load every .dm file named directly or found at the top of a directory."""
    sources = []
    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            for mod_file in sorted(path.glob(f"*{MOD_EXTENSION}")):
                sources.append(ModSource.from_file(mod_file))
        else:
            sources.append(ModSource.from_file(path))
    return sources


def cmd_merge(args):
    """Merge mods into one."""
    from dommerger.writer.merge import ModMerger

    overrides = {
        "mod_name": args.name,
        "display_name": args.display_name,
        "description": args.description,
        "version": args.mod_version,
        "icon": args.icon,
        "output_dir": args.output_dir,
        "parse_workers": args.workers,
    }
    if args.display_name and not args.name:
        overrides["mod_name"] = sanitize_mod_name(args.display_name)

    try:
        config = MergeConfig(args.config, overrides=overrides)
        setup_logging(_log_level(args, config.log_level))
        sources = collect_sources(args.mods)
    except (ConfigError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    result = ModMerger(config).merge(sources, report_path=args.report)

    for warning in result.warnings:
        print(f"Warning: {warning}", file=sys.stderr)

    if result.is_failure:
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    print(result.message)
    print(f"Remapped ids: {result.data.get('remapped', 0)}")
    return 0


def cmd_scan(args):
    """Parse mods and show what each defines."""
    from dommerger.parser.pool import parse_mods

    setup_logging(_log_level(args))
    try:
        definitions = parse_mods(collect_sources(args.mods))
    except (MergeError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for name, definition in definitions.items():
        title = f"{name} ({definition.display_name})" if definition.display_name else name
        print(title)
        for entity_type in definition.entity_types():
            entity_def = definition.definition(entity_type)
            parts = []
            if entity_def.defined_ids:
                parts.append(f"{len(entity_def.defined_ids)} defined")
            if entity_def.vanilla_edited_ids:
                parts.append(f"{len(entity_def.vanilla_edited_ids)} vanilla edited")
            if entity_def.implicit_count:
                parts.append(f"{entity_def.implicit_count} implicit")
            print(f"  {entity_type.label}: {', '.join(parts)}")
        for message in definition.warnings:
            print(f"  Warning: {message}")
    return 0


def cmd_conflicts(args):
    """Show id collisions and vanilla conflicts without writing anything."""
    from dommerger.parser.pool import parse_mods
    from dommerger.resolver.mapper import allocate
    from dommerger.resolver.report import render_markdown_report, render_text_report

    setup_logging(_log_level(args))
    try:
        definitions = parse_mods(collect_sources(args.mods))
        result = allocate(definitions)
    except (MergeError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.markdown:
        print(render_markdown_report(result))
    else:
        print(render_text_report(result))
    return 0


def cmd_init_config(args):
    """Write a default configuration file."""
    path = write_default_config(Path(args.path) if args.path else None)
    print(f"Wrote {path}")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Dominions 6 mod merger",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    dommerger merge mods/WarriorKings.dm mods/MoreUnits.dm --name MyMerge
    dommerger merge ~/.dominions6/mods/ --display-name "My Big Merge" -o out/
    dommerger conflicts mods/ --markdown
""",
    )
    parser.add_argument('--version', action='version', version=f'dommerger {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # merge
    merge_p = subparsers.add_parser('merge', help='Merge mods into one')
    merge_p.add_argument('mods', nargs='+', help='Mod files or directories')
    merge_p.add_argument('-c', '--config', type=Path, help='Config file (YAML)')
    merge_p.add_argument('-n', '--name', help='Technical mod name (file/folder)')
    merge_p.add_argument('--display-name', help='Name shown in game')
    merge_p.add_argument('--description', help='Mod description')
    merge_p.add_argument('--mod-version', help='Mod version string')
    merge_p.add_argument('--icon', help='Icon file for the merged mod')
    merge_p.add_argument('-o', '--output-dir', help='Directory to write into')
    merge_p.add_argument('--report', type=Path, help='Also write a markdown merge report')
    merge_p.add_argument('-j', '--workers', type=int, help='Parallel parse workers')
    merge_p.add_argument('-v', '--verbose', action='store_true')
    merge_p.add_argument('-q', '--quiet', action='store_true')
    merge_p.set_defaults(func=cmd_merge)

    # scan
    scan_p = subparsers.add_parser('scan', help='Show what each mod defines')
    scan_p.add_argument('mods', nargs='+', help='Mod files or directories')
    scan_p.add_argument('-v', '--verbose', action='store_true')
    scan_p.set_defaults(func=cmd_scan)

    # conflicts
    conflicts_p = subparsers.add_parser('conflicts', help='Show id collisions')
    conflicts_p.add_argument('mods', nargs='+', help='Mod files or directories')
    conflicts_p.add_argument('--markdown', action='store_true', help='Markdown output')
    conflicts_p.add_argument('-v', '--verbose', action='store_true')
    conflicts_p.set_defaults(func=cmd_conflicts)

    # init-config
    init_p = subparsers.add_parser('init-config', help='Write a default config file')
    init_p.add_argument('path', nargs='?', help='Where to write (default ~/.dommerger/config.yaml)')
    init_p.set_defaults(func=cmd_init_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
