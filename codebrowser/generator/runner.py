"""One generation run, from command-line inputs to the run summary."""

from collections.abc import Sequence

from codebrowser.config_runtime import load_runtime_config
from codebrowser.utils.logging import logger

from .compile_db import CompilationDatabase, FixedCompilationDatabase
from .dispatcher import Dispatcher, ProgressCallback
from .exceptions import CompilationDatabaseError
from .jobs import JobBuilder
from .processor import GenerationContext, UnitProcessor, load_processor
from .projects import ProjectRegistry, parse_external_spec, parse_project_spec
from .sources import collect_sources


def load_database(build_path: str | None, compile_args: Sequence[str] | None) -> CompilationDatabase:
    """Inline ``--`` arguments win over ``-b``. One of them is required."""
    if compile_args is not None:
        logger.info(f"Using fixed compile command: {list(compile_args)}")
        return FixedCompilationDatabase(list(compile_args))
    if build_path:
        return CompilationDatabase.load(build_path)
    raise CompilationDatabaseError(
        "Could not load compilationdatabase. Please use the -b option to a path containing "
        "a compile_commands.json, or use '--' followed by the compilation commands."
    )


def run_generation(
    output: str,
    sources: Sequence[str] = (),
    build_path: str | None = None,
    compile_args: Sequence[str] | None = None,
    projects: Sequence[str] = (),
    externals: Sequence[str] = (),
    process_all: bool = False,
    data_path: str | None = None,
    processor: UnitProcessor | str | None = None,
    workers: int | None = None,
    config_root: str = ".",
    progress: ProgressCallback | None = None,
) -> dict:
    """Generate the browsable output for ``sources`` into ``output``.

    Raises ConfigurationError (or a subclass) before any unit is scheduled
    when the inputs are unusable. Per-file problems only show up in the
    returned counters.
    """
    config = load_runtime_config(config_root)
    data_path = data_path or config["paths"]["data_path"]
    workers = workers or config["limits"]["workers"]

    database = load_database(build_path, compile_args)
    if not isinstance(processor, UnitProcessor):
        processor = load_processor(processor)

    # Projects and sources are validated before the output directory is touched
    project_infos = [(parse_project_spec(spec), spec) for spec in projects]
    external_infos = [(parse_external_spec(spec), spec) for spec in externals]

    registry = ProjectRegistry(output)
    registry.seed_system_projects(config["system_projects"])
    for info, spec in project_infos + external_infos:
        registry.register_spec(info, spec)

    selection = collect_sources(
        list(sources),
        database,
        registry,
        process_all=process_all,
        has_project_specs=bool(project_infos),
    )

    with GenerationContext.create(output, data_path, registry=registry) as context:
        builder = JobBuilder(
            database,
            config["paths"]["builtin_includes"],
            doc_extensions=config["extensions"]["doc_sources"],
        )
        dispatcher = Dispatcher(
            context,
            builder,
            processor,
            workers=workers,
            header_extensions=config["extensions"]["headers"],
            whole_directory=selection.whole_directory,
            progress=progress,
            progress_every=config["limits"]["progress_every"],
        )

        logger.info(f"Dispatching {len(selection.files)} files on {dispatcher.workers} workers")
        summary = dispatcher.dispatch(selection.files)

    logger.info(
        f"Generation finished: {summary['processed']} processed, {summary['failed']} failed, "
        f"{summary['plain_pages']} plain pages in {summary['elapsed']:.1f}s"
    )
    return summary
