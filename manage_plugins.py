#!/usr/bin/env python3
"""Plugin runtime management CLI tool."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

# Load .env before brains_core.constants reads the environment
load_dotenv(find_dotenv(usecwd=True))

from brains_core.constants import BUNDLED_PLUGINS_DIR, PLUGIN_PATHS, RUNTIME_CONFIG_FILE, parse_seconds
from brains_core.errors import DependencyCycleError, MissingDependencyError
from brains_core.permissions import PermissionService
from brains_core.plugins.config import RuntimeConfigService
from brains_core.plugins.discovery import PluginDiscovery
from brains_core.plugins.graph import DependencyGraph


def get_discovery(args) -> PluginDiscovery:
    """Create a PluginDiscovery instance."""
    search_paths = [Path(p) for p in args.plugin_dir] if args.plugin_dir else [BUNDLED_PLUGINS_DIR, *PLUGIN_PATHS]
    return PluginDiscovery(search_paths)


def get_config(args) -> RuntimeConfigService:
    """Create a RuntimeConfigService instance."""
    return RuntimeConfigService(Path(args.config) if args.config else RUNTIME_CONFIG_FILE)


def cmd_list(args):
    """List all discovered plugins."""
    manifests = get_discovery(args).discover_manifests()

    if not manifests:
        print("No plugins found.")
        return

    print(f"{'ID':<20} {'Version':<10} {'Dependencies'}")
    print("-" * 60)
    for manifest, _ in manifests:
        deps = ", ".join(manifest.dependencies) or "-"
        print(f"{manifest.id:<20} {manifest.version:<10} {deps}")


def cmd_info(args):
    """Show detailed plugin information."""
    config = get_config(args)
    manifests = get_discovery(args).discover_manifests()

    found = next(((m, p) for m, p in manifests if m.id == args.plugin_id), None)
    if not found:
        print(f"Plugin '{args.plugin_id}' not found.")
        sys.exit(1)

    manifest, path = found
    plugin_config = config.get_plugin_config(manifest.id)

    print(f"Plugin: {manifest.id}")
    print(f"  Name:         {manifest.name}")
    print(f"  Version:      {manifest.version}")
    print(f"  Description:  {manifest.description}")
    print(f"  Path:         {path}")
    print(f"  Entry Point:  {manifest.entry_point}")
    print(f"  Dependencies: {', '.join(manifest.dependencies) or '-'}")
    if plugin_config:
        print(f"  Config:       {json.dumps(plugin_config, indent=4, ensure_ascii=False)}")


def cmd_level(args):
    """Resolve the permission level of a caller."""
    service = PermissionService(get_config(args).get_permission_config())
    level = service.determine_level(args.interface_type, args.user_id)
    print(f"{args.interface_type}:{args.user_id} -> {level.value}")


def cmd_doctor(args):
    """Run health checks on the config and the plugin dependency graph."""
    issues = [f"Config: {problem}" for problem in get_config(args).validate()]

    raw_timeout = os.getenv("PLUGIN_HOOK_TIMEOUT", "").strip()
    if raw_timeout and parse_seconds(raw_timeout) is None:
        issues.append(f"Environment: PLUGIN_HOOK_TIMEOUT must be a non-negative number, got {raw_timeout!r}")

    manifests = get_discovery(args).discover_manifests()
    graph = DependencyGraph({m.id: m.dependencies for m, _ in manifests})
    ids = [m.id for m, _ in manifests]

    for manifest, path in manifests:
        entry_module = manifest.entry_point.split(":")[0]
        entry_file = path / f"{entry_module}.py"
        if not entry_file.exists():
            issues.append(f"Plugin '{manifest.id}': entry point file missing: {entry_file}")

    try:
        graph.validate(ids)
        graph.topological_order(ids)
    except (MissingDependencyError, DependencyCycleError) as e:
        issues.append(str(e))

    if issues:
        print(f"Found {len(issues)} issue(s):")
        for i, issue in enumerate(issues, 1):
            print(f"  {i}. {issue}")
        sys.exit(1)
    else:
        print(f"All checks passed. {len(manifests)} plugin(s) found.")


def main(argv: Optional[List[str]] = None):
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper()),
        format="%(levelname)s - %(name)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Brains Plugin Runtime Manager")
    parser.add_argument("--config", help="Runtime config file (default: BRAINS_CONFIG_FILE)")
    parser.add_argument(
        "--plugin-dir", action="append", help="Plugin search path (repeatable, replaces defaults)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # list
    subparsers.add_parser("list", help="List all plugins")

    # info
    info_parser = subparsers.add_parser("info", help="Show plugin details")
    info_parser.add_argument("plugin_id", help="Plugin ID")

    # level
    level_parser = subparsers.add_parser("level", help="Resolve a caller's permission level")
    level_parser.add_argument("interface_type", help="Interface type, e.g. 'cli' or 'matrix'")
    level_parser.add_argument("user_id", help="User ID within the interface")

    # doctor
    subparsers.add_parser("doctor", help="Run health checks")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "list": cmd_list,
        "info": cmd_info,
        "level": cmd_level,
        "doctor": cmd_doctor,
    }

    commands[args.command](args)


if __name__ == "__main__":
    main()
