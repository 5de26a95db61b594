# src/webapp2worker/services/script_render_service.py
from __future__ import annotations

import logging
from typing import List

from webapp2worker.model import ScriptNode, StyleNode, WorkerScript

logger = logging.getLogger(__name__)


def escape_template_literal(text: str) -> str:
    """
    Escapes text for embedding inside a JavaScript template literal (`...`).
    Backslashes first, so the escapes added for ` and ${ are not doubled.
    """
    return (
        text.replace("\\", "\\\\")
        .replace("`", "\\`")
        .replace("${", "\\${")
    )


def escape_comment_label(label: str) -> str:
    """Keeps a marker label from closing its /* ... */ comment early."""
    return label.replace("*/", "*\\/")


class ScriptRenderService:
    """
    Serializes a WorkerScript into JavaScript source.
    All untrusted text (markup, CSS, labels) passes through the escape helpers here.
    """

    def render(self, worker_script: WorkerScript) -> str:
        result = self.render_bootstrap(worker_script)
        result += "\n" + self.render_scripts(worker_script.scripts)
        logger.debug("Rendered worker script (%d chars).", len(result))
        return result

    def render_bootstrap(self, worker_script: WorkerScript) -> str:
        preamble = "\n\n".join(statement.source for statement in worker_script.preamble)
        styles = "\n".join(self._render_style(node) for node in worker_script.styles)

        return (
            "\n\n// worker polyfill\n"
            f"{preamble}\n\n"
            "// end of worker polyfill\n\n"
            "const _document = document.createDocumentFragment();\n\n"
            "const _vhead = document.createElement('div');\n"
            "_vhead.setAttribute('data-vhead', '');\n"
            f"_vhead.innerHTML = `{escape_template_literal(worker_script.head_markup.strip())}`;\n"
            "_document.appendChild(_vhead);\n\n"
            "const _vbody = document.createElement('div');\n"
            "_vbody.setAttribute('data-vbody', '');\n"
            f"_vbody.innerHTML = `{escape_template_literal(worker_script.body_markup.strip())}`;\n"
            "_document.appendChild(_vbody);\n\n"
            f"{styles}\n"
            "document.head = _vhead;\n"
            "document.body = _vbody;\n"
            "document.documentElement.appendChild(_document);\n"
        )

    @staticmethod
    def _render_style(node: StyleNode) -> str:
        varname = f"_vstyle${node.index}"
        return (
            f"const {varname} = document.createElement('style');\n"
            f"{varname}.setAttribute('data-vstyle', '{node.index}');\n"
            f"{varname}.innerHTML = `{escape_template_literal(node.css.strip())}`;\n"
            f"_vhead.appendChild({varname});\n"
        )

    @staticmethod
    def render_scripts(nodes: List[ScriptNode]) -> str:
        """Begin/end-marked script blocks, separated by a blank line."""
        blocks = []
        for node in nodes:
            label = escape_comment_label(node.label)
            blocks.append(
                f"/* -begin {label} */\n"
                f"{node.content.strip()}\n"
                f"/* -end   {label} */\n"
            )
        return "\n".join(blocks)
