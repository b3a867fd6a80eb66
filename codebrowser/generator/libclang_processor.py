"""Built-in unit processor based on the libclang Python bindings.

Parses one translation unit and, for its main file, writes:

- the HTML page with an anchor per definition,
- one ``<def .../>`` or ``<use .../>`` record per symbol into ``refs/``,
- one entry per function definition into ``fnSearch/``,
- the page name into ``fileIndex`` and the project log.
"""

import hashlib
import threading
from collections import defaultdict
from pathlib import Path

from clang.cindex import (
    Cursor,
    CursorKind,
    Diagnostic,
    Index,
    TranslationUnit,
    TranslationUnitLoadError,
)

from codebrowser.utils.logging import logger

from .jobs import Job
from .page import make_footer, render_plain_page
from .processor import GenerationContext, UnitProcessor
from .projects import canonicalize

FUNCTION_KINDS = frozenset({
    CursorKind.FUNCTION_DECL,
    CursorKind.CXX_METHOD,
    CursorKind.CONSTRUCTOR,
    CursorKind.DESTRUCTOR,
    CursorKind.FUNCTION_TEMPLATE,
    CursorKind.CONVERSION_FUNCTION,
})

REFERENCE_KINDS = frozenset({
    CursorKind.DECL_REF_EXPR,
    CursorKind.MEMBER_REF_EXPR,
    CursorKind.TYPE_REF,
    CursorKind.TEMPLATE_REF,
    CursorKind.NAMESPACE_REF,
    CursorKind.MEMBER_REF,
    CursorKind.MACRO_INSTANTIATION,
})

MAX_KEY_LENGTH = 200


def symbol_key(usr: str, kind: CursorKind) -> str:
    """File name under ``refs/`` for a symbol. Macros live in ``refs/_M/``."""
    key = usr.replace("/", "_").replace("\\", "_")
    if len(key) > MAX_KEY_LENGTH:
        digest = hashlib.sha1(usr.encode("utf-8")).hexdigest()[:16]
        key = f"{key[:150]}_{digest}"
    if kind == CursorKind.MACRO_DEFINITION:
        return f"_M/{key}"
    return key


def function_index_key(name: str) -> str:
    """``fnSearch/`` bucket: the first two characters of the name, lowercased."""
    bucket = "".join(c if c.isalnum() else "_" for c in name[:2].lower())
    return bucket or "_"


def qualified_name(cursor: Cursor) -> str:
    parts = []
    while cursor is not None and cursor.kind != CursorKind.TRANSLATION_UNIT:
        if cursor.spelling:
            parts.append(cursor.spelling)
        cursor = cursor.semantic_parent
    return "::".join(reversed(parts))


class LibclangProcessor(UnitProcessor):
    """Unit processor driving libclang, one Index per worker thread."""

    def __init__(self):
        self._local = threading.local()

    def _index(self) -> Index:
        index = getattr(self._local, "index", None)
        if index is None:
            index = Index.create()
            self._local.index = index
        return index

    def process(self, job: Job, context: GenerationContext) -> bool:
        main_file = job.absolute_path
        project = context.registry.resolve(main_file)
        if project is None:
            logger.warning(f"No project owns {main_file}")
            return False

        # Drop the compiler executable and the input file itself
        args = [token for token in job.command_tokens[1:] if token != main_file]
        try:
            tu = self._index().parse(
                main_file,
                args=args,
                options=TranslationUnit.PARSE_DETAILED_PROCESSING_RECORD,
            )
        except TranslationUnitLoadError as e:
            logger.error(f"The file was not recognized as source code: {main_file} ({e})")
            return False

        errors = [d for d in tu.diagnostics if d.severity >= Diagnostic.Error]
        if errors:
            logger.debug(f"{len(errors)} compiler errors in {main_file}, first: {errors[0].spelling}")

        relative_name = context.registry.relative_name(main_file, project)
        anchors = self._emit_references(tu, main_file, relative_name, context)

        if not job.page_claimed and not context.registry.admits(main_file, project):
            logger.debug(f"Page for {main_file} already claimed by another unit")
            return True

        text = Path(main_file).read_bytes().decode("utf-8", errors="replace")
        page = Path(context.output_root) / f"{relative_name}.html"
        page.parent.mkdir(parents=True, exist_ok=True)
        page.write_text(
            render_plain_page(
                relative_name,
                text,
                make_footer(project),
                None,
                context.data_path,
                anchors=anchors,
            ),
            encoding="utf-8",
            errors="surrogateescape",
        )
        context.output.add_file_index(relative_name)
        context.output.append_to_project_log(project.name, relative_name)
        return True

    def _emit_references(
        self,
        tu: TranslationUnit,
        main_file: str,
        relative_name: str,
        context: GenerationContext,
    ) -> dict[int, list[str]]:
        anchors: dict[int, list[str]] = defaultdict(list)
        file_cache: dict[str, bool] = {}

        for cursor in tu.cursor.walk_preorder():
            location = cursor.location
            if location.file is None:
                continue
            name = location.file.name
            if name not in file_cache:
                file_cache[name] = canonicalize(name) == main_file
            if not file_cache[name]:
                continue

            kind = cursor.kind
            if kind == CursorKind.MACRO_DEFINITION or (kind.is_declaration() and cursor.is_definition()):
                usr = cursor.get_usr()
                if not usr:
                    continue
                anchors[location.line].append(usr)
                context.output.append_to_symbol_index(
                    symbol_key(usr, kind),
                    f"<def f='{relative_name}' l='{location.line}' type='{kind.name.lower()}'/>",
                )
                if kind in FUNCTION_KINDS:
                    context.output.append_to_function_index(
                        function_index_key(cursor.spelling),
                        f"{usr}|{qualified_name(cursor)}",
                    )
            elif kind in REFERENCE_KINDS:
                target = cursor.referenced
                if target is None:
                    continue
                usr = target.get_usr()
                if not usr:
                    continue
                context.output.append_to_symbol_index(
                    symbol_key(usr, target.kind),
                    f"<use f='{relative_name}' l='{location.line}' c='{location.column}'/>",
                )

        return anchors
