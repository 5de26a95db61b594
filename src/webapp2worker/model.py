# src/webapp2worker/model.py
from __future__ import annotations

import logging
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


# --- Extracted resources ---

class InlineStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    content: str = ""


class ExternalStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["external"] = "external"
    href: str
    content: str = ""


class InlineScript(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["inline"] = "inline"
    content: str = ""


class ExternalScript(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["external"] = "external"
    src: str
    content: str = ""


StyleResource = Annotated[Union[InlineStyle, ExternalStyle], Field(discriminator="kind")]
ScriptResource = Annotated[Union[InlineScript, ExternalScript], Field(discriminator="kind")]


class RenderInput(BaseModel):
    head_markup: str = ""
    body_markup: str = ""
    styles: List[StyleResource] = Field(default_factory=list)
    scripts: List[ScriptResource] = Field(default_factory=list)


# --- Intermediate representation of the generated worker script ---

class PreambleStatement(BaseModel):
    """One named block of the runtime polyfill, emitted verbatim."""
    model_config = ConfigDict(frozen=True)

    name: str
    source: str


class StyleNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    css: str = Field(description="Stylesheet text with html/body selectors already scoped.")


class ScriptNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    content: str


class WorkerScript(BaseModel):
    preamble: List[PreambleStatement] = Field(default_factory=list)
    head_markup: str = ""
    body_markup: str = ""
    styles: List[StyleNode] = Field(default_factory=list)
    scripts: List[ScriptNode] = Field(default_factory=list)


# --- Settings ---

class RuntimeSettings(BaseModel):
    adapter: str = Field(default="worker")
    message_marker: str = Field(default="BRANEWORKERMESSAGE=")
    history_library_url: str = Field(default="https://unpkg.com/history@latest/umd/history.development.js")
    history_global: str = Field(default="HistoryLibrary")
    base_href: str = Field(default="http://localhost:8080/")
    max_key_depth: int = Field(default=32, description="Nesting limit for the inbound message key search.")

    @field_validator("message_marker")
    @classmethod
    def _non_empty_marker(cls, v: str) -> str:
        if not v:
            raise ValueError("message_marker cannot be empty")
        return v

    @field_validator("max_key_depth")
    @classmethod
    def _positive_depth(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_key_depth must be at least 1")
        return v
