# src/webapp2worker/services/css_scope_service.py
import re

VIRTUAL_ROOT_SELECTOR = ":root"
VIRTUAL_BODY_SELECTOR = "[data-vbody]"

# ASCII word boundaries, so "embodyment" or "html5" stay untouched.
_HTML_TOKEN = re.compile(r"\bhtml\b", re.ASCII)
_BODY_TOKEN = re.compile(r"\bbody\b", re.ASCII)


def scope_css(css: str) -> str:
    """
    Retargets stylesheet text at the virtual DOM: standalone `html` tokens become
    `:root` and standalone `body` tokens become `[data-vbody]`.
    This is a plain token swap; occurrences inside strings or comments are rewritten too.
    """
    css = _HTML_TOKEN.sub(VIRTUAL_ROOT_SELECTOR, css)
    return _BODY_TOKEN.sub(VIRTUAL_BODY_SELECTOR, css)
