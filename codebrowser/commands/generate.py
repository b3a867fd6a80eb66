"""Generate the browsable HTML for a set of C/C++ sources."""

import sys

import click

from codebrowser.utils.error_handler import handle_exceptions
from codebrowser.utils.exit_codes import ExitCodes


@click.command()
@handle_exceptions
@click.option("-o", "--output", "output", required=True, help="Output directory for the generated files")
@click.option(
    "-b",
    "--build-path",
    default=None,
    help="Build directory containing compile_commands.json, or the JSON file itself",
)
@click.option(
    "-d",
    "--data-path",
    default=None,
    help="Data url where all the javascript and css files are found (default: ../data)",
)
@click.option(
    "-p",
    "--project",
    "projects",
    multiple=True,
    metavar="NAME:PATH[:REVISION]",
    help="Project specification",
)
@click.option(
    "-e",
    "--external",
    "externals",
    multiple=True,
    metavar="NAME:PATH:URL",
    help="Reference to an external project published at URL",
)
@click.option("-a", "--all", "process_all", is_flag=True, help="Process all files from the compile_commands.json")
@click.option(
    "--processor",
    default=None,
    metavar="MODULE:ATTR",
    help="Unit processor to use (default: the built-in libclang processor)",
)
@click.option("--workers", type=int, default=None, help="Worker threads (default: CPU count)")
@click.option("--quiet", is_flag=True, help="No progress lines and no summary table")
@click.argument("sources", nargs=-1)
@click.pass_context
def generate(ctx, output, build_path, data_path, projects, externals, process_all, processor, workers, quiet, sources):
    """Generate the code browser for SOURCES.

    Every source is resolved to the project owning it (longest -p/-e root
    prefix). Files with their own compile command are processed first; the
    rest (headers, files missing from the database) borrow the command of
    the nearest known file, or get a plain page without highlighting.

    \b
    Examples:
      cbgen generate -b build -o html -p qt:/src/qt:v6.5 -a
      cbgen generate -b build -o html -p app:/src/app -e qt:/usr/include/qt:https://code.example.org/qt
      cbgen generate -o html /src/tool                      # whole directory
      cbgen generate -o html -p app:/src/app main.c -- -DNDEBUG -Iinclude

    \b
    Output:
      <output>/<project>/<path>.html   # One page per source file
      <output>/fileIndex               # Annotated pages
      <output>/otherIndex              # Plain pages
      <output>/refs/, <output>/fnSearch/

    \b
    EXIT CODES:
      0 = Success
      1 = Configuration error, nothing was processed
      2 = Run completed but some files failed to process
    """
    from codebrowser.generator import ConfigurationError, run_generation
    from codebrowser.ui import print_error, print_progress, print_summary
    from codebrowser.utils.constants import STATE_DIR
    from codebrowser.utils.logging import configure_file_logging, logger

    compile_args = (ctx.obj or {}).get("compile_args")

    handler_id = configure_file_logging(STATE_DIR)
    try:
        summary = run_generation(
            output,
            sources=sources,
            build_path=build_path,
            compile_args=compile_args,
            projects=projects,
            externals=externals,
            process_all=process_all,
            data_path=data_path,
            processor=processor,
            workers=workers,
            progress=None if quiet else print_progress,
        )
    except ConfigurationError as e:
        print_error(str(e))
        sys.exit(ExitCodes.CONFIGURATION_ERROR)
    finally:
        logger.remove(handler_id)

    if not quiet:
        print_summary(summary)

    if summary["failed"]:
        sys.exit(ExitCodes.UNITS_FAILED)
