"""
Services command - Inspect service file discovery.

Usage:
    dibuild services:find [OPTIONS]
"""

import os
import sys

import click

from dibuild.config import (
    get_cpass_pattern,
    get_scan_directories,
    get_scan_files,
    split_list,
)
from dibuild.exceptions import BuildException
from dibuild.finder import CompilerPassFinder, ServiceFileFinder
from dibuild.options import CompilerPassFinderOptions, ServiceFileFinderOptions


@click.command('services:find')
@click.option(
    '--scan-directories', '-d',
    default=get_scan_directories,
    show_default='.',
    help='Comma separated list of directories to scan.',
)
@click.option('--scan-files', '-l', default=get_scan_files, help='Comma separated list of service file names.')
@click.option('--find-first', '-f', default=None, help='Comma separated list of files listed first.')
@click.option('--cpass-pattern', '-p', default=get_cpass_pattern, help='Regex matching compiler pass file names.')
@click.option('--compiler-passes', '-c', is_flag=True, help='Also list compiler pass files.')
@click.pass_context
def find(
    ctx: click.Context,
    scan_directories: str,
    scan_files: str,
    find_first: str,
    cpass_pattern: str,
    compiler_passes: bool,
) -> None:
    """List service files in the order container:build reads them.

    \b
    Examples:
        dibuild services:find -d config
        dibuild services:find -d config,src -f config/base.yaml -c
    """
    try:
        cwd = os.getcwd()
        directories = split_list(scan_directories) or None

        finder = ServiceFileFinder(ServiceFileFinderOptions.from_dict({
            'directories': directories,
            'files': split_list(scan_files) or None,
            'find_first': split_list(find_first) or None,
        }, cwd=cwd), cwd)

        if compiler_passes:
            pass_finder = CompilerPassFinder(CompilerPassFinderOptions.from_dict({
                'directories': directories,
                'pattern': cpass_pattern or None,
            }, cwd=cwd), cwd)

            click.echo("=== Compiler passes ===")
            for file in pass_finder.find():
                click.echo(file)
            click.echo()
            click.echo("=== Service files ===")

        files = finder.find()
        for file in files:
            click.echo(file)

        if not files:
            click.echo(click.style("No service files found.", fg='yellow'), err=True)

    except BuildException as e:
        click.echo(f"Find failed: {e}", err=True)
        if ctx.obj.get('debug'):
            import traceback
            traceback.print_exc()
        sys.exit(1)
