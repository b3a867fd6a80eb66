"""cbgen CLI - main entry point and command registration hub."""
# ruff: noqa: E402 - Intentional lazy loading: commands imported after cli group definition

import sys

import click

from codebrowser import __version__


@click.group()
@click.version_option(version=__version__, prog_name="cbgen")
@click.help_option("-h", "--help")
def cli():
    """cbgen - static HTML code browser generator for C and C++ projects

    \b
    QUICK START:
      cbgen generate -b build -o html -p myproj:$PWD -a
      cbgen generate -o html src/                # whole directory
      cbgen generate -o html -p p:$PWD a.c -- -DFOO -Iinclude

    For detailed options: cbgen <command> --help"""
    pass


from codebrowser.commands.generate import generate

cli.add_command(generate)


def split_compile_args(argv: list[str]) -> tuple[list[str], list[str] | None]:
    """Split ``argv`` at the first ``--``.

    Everything after it is the inline compile command; None when absent.
    """
    if "--" not in argv:
        return argv, None
    index = argv.index("--")
    return argv[:index], argv[index + 1:]


def main(argv: list[str] | None = None):
    """Console script entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)
    args, compile_args = split_compile_args(argv)
    cli.main(args=args, prog_name="cbgen", obj={"compile_args": compile_args})


if __name__ == "__main__":
    main()
