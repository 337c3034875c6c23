"""
Container command - Build the compiled container.

Usage:
    dibuild container:build OUTPUT-FILE [DUMP-FORMAT] [OPTIONS]
"""

import os
import sys
import json
import time
from typing import Optional

import click

from dibuild.builder import Builder
from dibuild.config import (
    get_cpass_pattern,
    get_dump_format,
    get_scan_directories,
    get_scan_files,
    split_list,
)
from dibuild.events import BuildObserver
from dibuild.exceptions import BuildException, JSONDecodeError
from dibuild.options import (
    CompilerPassFinderOptions,
    CompilerPassReaderOptions,
    ContainerWriterOptions,
    ServiceCompilerOptions,
    DEFAULT_SERVICE_FILES,
    ServiceFileFinderOptions,
    ServiceReaderOptions,
)


class ProgressBarObserver(BuildObserver):
    """Renders service file reading as a click progress bar."""

    def __init__(self):
        self._bar = None

    def on_before_compile(self, files):
        self._bar = click.progressbar(
            length=len(files),
            label='Reading service files',
            file=sys.stderr,
        )
        self._bar.__enter__()

    def on_compile(self, file):
        if self._bar is not None:
            self._bar.update(1)

    def on_skip(self, file, reason):
        if self._bar is not None:
            self._bar.update(1)

    def on_after_compile(self, files, summary):
        self.close()

    def close(self) -> None:
        if self._bar is not None:
            self._bar.__exit__(None, None, None)
            self._bar = None


def parse_dump_options(value: Optional[str]) -> dict:
    """
    Decode the --dump-options JSON object.

    Raises:
        JSONDecodeError: Malformed JSON
    """
    if value is None or not value.strip():
        return {}
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise JSONDecodeError.from_decode_error(e, "--dump-options") from e


@click.command('container:build')
@click.argument('output_file', metavar='OUTPUT-FILE')
@click.argument('dump_format', metavar='DUMP-FORMAT', required=False)
@click.option('--force-overwrite', '-w', is_flag=True, help='Overwrite the output file.')
@click.option(
    '--scan-directories', '-d',
    default=get_scan_directories,
    show_default='.',
    help='Comma separated list of directories to scan.',
)
@click.option(
    '--scan-files', '-l',
    default=get_scan_files,
    help='Comma separated list of service file names to scan '
         '(default: services.yaml, services.yml, services.xml, services.json).',
)
@click.option(
    '--find-first', '-f',
    default=None,
    help=('Comma separated list of service files loaded with first priority. '
          'Scanned files are matched before paths relative to the working directory.'),
)
@click.option('--ignore-read-errors', '-i', is_flag=True, help='Skip unreadable files instead of failing.')
@click.option('--dump-options', '-j', default=None, help='Dumper options as a JSON object.')
@click.option(
    '--cpass-pattern', '-p',
    default=get_cpass_pattern,
    help=r'Regex matching compiler pass file names (default: ^.*\.cpass\.py$).',
)
@click.pass_context
def build(
    ctx: click.Context,
    output_file: str,
    dump_format: Optional[str],
    force_overwrite: bool,
    scan_directories: str,
    scan_files: str,
    find_first: Optional[str],
    ignore_read_errors: bool,
    dump_options: Optional[str],
    cpass_pattern: str,
) -> None:
    """Build the compiled services file.

    \b
    Dump formats: python (default), xml, yaml, json, graphviz

    \b
    Examples:
        dibuild container:build var/container.py
        dibuild container:build var/services.xml xml -d config,src -w
        dibuild container:build out.yaml yaml -f config/base.yaml -i
        dibuild container:build out.py -j '{"class_name": "AppContainer"}'
    """
    debug = (ctx.obj or {}).get('debug', False)
    start = time.perf_counter()
    progress = ProgressBarObserver()

    try:
        options = parse_dump_options(dump_options)
        cwd = os.getcwd()
        directories = split_list(scan_directories) or None
        ignore_errors = ignore_read_errors or None

        writer_options = ContainerWriterOptions.from_dict({
            'filename': output_file,
            'force': force_overwrite,
        }, cwd=cwd)

        finder_options = ServiceFileFinderOptions.from_dict({
            'directories': directories,
            'files': split_list(scan_files) or None,
            'find_first': split_list(find_first) or None,
        }, cwd=cwd)

        reader_options = ServiceReaderOptions.from_dict({'ignore_errors': ignore_errors}, cwd=cwd)

        compiler_pass_finder_options = CompilerPassFinderOptions.from_dict({
            'directories': directories,
            'pattern': cpass_pattern or None,
        }, cwd=cwd)

        compiler_pass_reader_options = CompilerPassReaderOptions.from_dict(
            {'ignore_errors': ignore_errors}, cwd=cwd
        )

        compiler_options = ServiceCompilerOptions.from_dict({
            'dump_format': dump_format or get_dump_format() or None,
            'dump_options': options,
            'observer': progress,
        }, cwd=cwd)

        click.echo()
        click.echo(click.style('[ Building compiled services file ]', fg='green'))
        click.echo()

        builder = Builder.create(
            finder_options,
            reader_options,
            compiler_options,
            writer_options,
            compiler_pass_finder_options,
            compiler_pass_reader_options,
            cwd=cwd,
        )
        result = builder.build()

    except BuildException as e:
        progress.close()
        click.echo(click.style('\nBuild failed!\n', fg='red'), err=True)
        click.echo(str(e), err=True)
        click.echo(f"Scanned directories: {scan_directories}", err=True)
        click.echo(f"Scanned files: {scan_files or ', '.join(DEFAULT_SERVICE_FILES)}", err=True)
        if debug:
            import traceback
            traceback.print_exc()
        _took(start)
        sys.exit(1)

    click.echo()
    for skipped in result.skipped:
        click.echo(
            click.style(f"Skipped {skipped.kind} file {skipped.path}: {skipped.reason}", fg='yellow'),
            err=True,
        )

    if result.written:
        click.echo(
            f"Wrote {result.services} service(s) to {result.filename} "
            f"({compiler_options.dump_format.value})"
        )
    else:
        click.echo(f"Mock write: {result.filename} not written")

    _took(start)


def _took(start: float) -> None:
    total = round(time.perf_counter() - start, 2)
    click.echo(click.style(f"\nTook: {total} seconds", fg='green'))

