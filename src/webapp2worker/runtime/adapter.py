# src/webapp2worker/runtime/adapter.py
from __future__ import annotations

import abc
import json
import logging
from string import Template
from typing import Dict, List, Type

from webapp2worker.model import PreambleStatement, RuntimeSettings
from webapp2worker.utils.url_utils import UrlUtils

logger = logging.getLogger(__name__)


class RuntimeAdapter(metaclass=abc.ABCMeta):
    """
    Abstract base class for hosting environments.

    An adapter supplies the statements that give extracted page scripts the
    main-thread capabilities they expect (location, history, message driven
    events, document wiring) before any of them runs.
    """

    def __init__(self, settings: RuntimeSettings):
        self.settings = settings

    @abc.abstractmethod
    def preamble(self) -> List[PreambleStatement]:
        """Returns the ordered polyfill statements for this host."""
        raise NotImplementedError("Every runtime adapter must implement 'preamble'.")


_HISTORY_IMPORT = Template("importScripts($url);")

_WINDOW_SHIM = Template("""\
globalThis.window = {
  ...globalThis,
  location: {
$fields
    assign(path) {
      const url = new URL(path, this.href);
      this.hash = url.hash;
      this.host = url.host;
      this.hostname = url.hostname;
      this.href = url.href;
      this.origin = url.origin;
      this.pathname = url.pathname;
      this.port = url.port;
      this.protocol = url.protocol;
      this.search = url.search;
    },
  }
};""")

_MESSAGE_HANDLER = Template("""\
// worker get message from main thread
onmessage = (obj) => {
  const marker = $marker
  const str = obj?.data
  if (typeof str !== 'string' || !str.startsWith(marker))
    return
  let e
  try {
    e = JSON.parse(str.slice(marker.length))
  } catch (err) {
    return
  }
  if (hasKey(e, 'button')) {
    const event = new CustomEvent('customclick', { detail: e })
    console.log('worker received message from main thread:', event)
    document.dispatchEvent(event)
  }
}""")

_DOCUMENT_BINDING = Template("""\
(function (w, d) {
  const history = $history_global.createMemoryHistory()
  history.replaceState = (state, unused, url) => {
    history.push(url, state)
  }
  w.history = history
  d.defaultView = w
  d.addEventListener('customclick', (e) => {
    console.log('worker received customclick event', e)
  })
})(window, document)""")

_HAS_KEY = Template("""\
// check if nested object has key (bounded depth, cycle safe)
function hasKey(obj, key, depth = 0, seen = new Set()) {
  if (obj === null || typeof obj !== 'object' || depth > $max_depth || seen.has(obj))
    return false
  seen.add(obj)
  if (Object.prototype.hasOwnProperty.call(obj, key))
    return true
  for (const k in obj) {
    if (hasKey(obj[k], key, depth + 1, seen))
      return true
  }
  return false
}""")


class WorkerRuntimeAdapter(RuntimeAdapter):
    """Polyfills a dedicated Web Worker, which has no DOM, location or history of its own."""

    def preamble(self) -> List[PreambleStatement]:
        s = self.settings
        fields = "\n".join(
            f"    {name}: {json.dumps(value)},"
            for name, value in UrlUtils.location_fields(s.base_href).items()
        )
        return [
            PreambleStatement(
                name="history_import",
                source=_HISTORY_IMPORT.substitute(url=json.dumps(s.history_library_url)),
            ),
            PreambleStatement(name="window_shim", source=_WINDOW_SHIM.substitute(fields=fields)),
            PreambleStatement(
                name="message_handler",
                source=_MESSAGE_HANDLER.substitute(marker=json.dumps(s.message_marker)),
            ),
            PreambleStatement(
                name="document_binding",
                source=_DOCUMENT_BINDING.substitute(history_global=s.history_global),
            ),
            PreambleStatement(name="has_key", source=_HAS_KEY.substitute(max_depth=s.max_key_depth)),
        ]


RUNTIME_ADAPTERS: Dict[str, Type[RuntimeAdapter]] = {
    "worker": WorkerRuntimeAdapter,
}


def get_adapter(settings: RuntimeSettings) -> RuntimeAdapter:
    """Instantiates the adapter named in the settings."""
    adapter_cls = RUNTIME_ADAPTERS.get(settings.adapter)
    if adapter_cls is None:
        raise ValueError(
            f"Unknown runtime adapter '{settings.adapter}'. Available: {', '.join(sorted(RUNTIME_ADAPTERS))}"
        )
    logger.debug("Using runtime adapter '%s'.", settings.adapter)
    return adapter_cls(settings)
