"""Plain, unannotated HTML pages.

Used when no compile command can be found for a file: the file is still
published, with numbered lines but without highlighting or cross
references.
"""

import html
import posixpath
from datetime import datetime
from pathlib import Path

from .config import FOOTER_DATE_FORMAT
from .projects import ProjectInfo


def make_footer(project: ProjectInfo, now: datetime | None = None) -> str:
    """``Generated on <em>DATE</em> from project NAME[ revision <em>REV</em>]``"""
    now = now or datetime.now()
    footer = (
        f"Generated on <em>{now.strftime(FOOTER_DATE_FORMAT)}</em> "
        f"from project {html.escape(project.name)}"
    )
    if project.revision:
        footer += f" revision <em>{html.escape(project.revision)}</em>"
    return footer


def root_prefix(relative_name: str) -> str:
    """``../`` repeated once per directory level of the page."""
    depth = relative_name.count("/")
    return "../" * depth


def resolve_data_path(relative_name: str, data_path: str) -> str:
    """Data URL as seen from the page. Relative paths are output-root relative."""
    if "://" in data_path or data_path.startswith("/"):
        return data_path.rstrip("/")
    return posixpath.normpath(root_prefix(relative_name) + data_path)


def render_plain_page(
    relative_name: str,
    text: str,
    footer: str,
    warning: str | None,
    data_path: str,
    anchors: dict[int, list[str]] | None = None,
) -> str:
    """Complete HTML document for ``relative_name`` (``project/path/file``).

    ``anchors`` maps 1-based line numbers to element ids placed on that line.
    """
    data = html.escape(resolve_data_path(relative_name, data_path), quote=True)
    root = html.escape(root_prefix(relative_name) or "./", quote=True)
    filename = html.escape(posixpath.basename(relative_name))
    title = html.escape(relative_name)

    parts = [
        "<!doctype html>\n<html>\n<head>\n",
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"<title>{filename} source code [{title}] - Codebrowser</title>\n",
        f'<link rel="stylesheet" href="{data}/qtcreator.css" title="QtCreator"/>\n',
        f'<script type="text/javascript" src="{data}/jquery/jquery.min.js"></script>\n',
        f"<script>var file = '{title}'; var root_path = '{root}'; var data_path = '{data}';</script>\n",
        f"<script src='{data}/codebrowser.js'></script>\n",
        "</head>\n<body><div id='header'><h1 id='breadcrumb'>",
        f"<span>Browse the source code of </span>{title}</h1></div>\n",
        '<hr/><div id="content">',
    ]
    if warning:
        parts.append(f'<p class="warnmsg">{html.escape(warning)}</p>\n')
    parts.append('<table class="code">\n')
    anchors = anchors or {}

    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    for number, line in enumerate(lines, start=1):
        marks = "".join(
            f'<a class="def" id="{html.escape(anchor, quote=True)}"></a>' for anchor in anchors.get(number, ())
        )
        parts.append(f'<tr><th id="{number}">{number}</th><td>{marks}{html.escape(line)}</td></tr>\n')

    parts.append(f"</table><hr/><p id='footer'>\n{footer}\n</p></div></body>\n</html>\n")
    return "".join(parts)


def write_plain_page(
    output_root: str | Path,
    relative_name: str,
    source_file: str | Path,
    footer: str,
    warning: str,
    data_path: str,
) -> Path:
    """Render ``source_file`` into ``<output_root>/<relative_name>.html``.

    Raises OSError if the source cannot be read or the page written.
    """
    raw = Path(source_file).read_bytes()
    text = raw.decode("utf-8", errors="replace")

    destination = Path(output_root) / f"{relative_name}.html"
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(
        render_plain_page(relative_name, text, footer, warning, data_path),
        encoding="utf-8",
        errors="surrogateescape",
    )
    return destination
