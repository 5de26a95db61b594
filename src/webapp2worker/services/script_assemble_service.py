# src/webapp2worker/services/script_assemble_service.py
from typing import List

from webapp2worker.model import ScriptNode, ScriptResource


def build_script_nodes(scripts: List[ScriptResource]) -> List[ScriptNode]:
    """
    Labels each script for its begin/end markers, in extraction order.
    External scripts keep their original src; inline scripts are numbered from 0,
    counting inline scripts only.
    """
    nodes: List[ScriptNode] = []
    inline_count = 0
    for script in scripts:
        if script.kind == "external":
            label = script.src
        else:
            label = str(inline_count)
            inline_count += 1
        nodes.append(ScriptNode(label=label, content=script.content))
    return nodes
