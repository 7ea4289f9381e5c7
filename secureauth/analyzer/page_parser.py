"""Build page/form snapshots from raw HTML."""

from __future__ import annotations

import re
from html.parser import HTMLParser

from .models import FormField, FormLabel, FormSnapshot, PageContext

_SKIP_TAGS = {"script", "style", "noscript", "svg", "template", "head"}
_FRAME_TAGS = {"iframe", "frame"}


class _PageExtractor(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._chunks: list[str] = []
        self._skip_depth = 0
        self.frame_count = 0
        self.forms: list[FormSnapshot] = []
        self._form: FormSnapshot | None = None
        self._label: FormLabel | None = None
        self._label_chunks: list[str] = []
        self._link_chunks: list[str] | None = None

    def handle_starttag(self, tag: str, attrs) -> None:  # type: ignore[override]
        attr = {k.lower(): (v or "") for k, v in attrs}
        if tag in _SKIP_TAGS:
            self._skip_depth += 1
            return
        if tag in _FRAME_TAGS:
            self.frame_count += 1
            return

        if tag == "form":
            index = len(self.forms)
            key = attr.get("id") or attr.get("name") or f"form-{index}"
            self._form = FormSnapshot(key=key, action=attr.get("action", ""))
            self.forms.append(self._form)
            return

        if self._form is None:
            return

        if tag == "input":
            self._form.fields.append(
                FormField(
                    type=(attr.get("type") or "text").lower(),
                    name=attr.get("name", ""),
                    id=attr.get("id", ""),
                    autocomplete=attr.get("autocomplete", "").lower(),
                    value=attr.get("value", ""),
                )
            )
        elif tag == "label":
            self._label = FormLabel(for_id=attr.get("for", ""))
            self._label_chunks = []
        elif tag == "a":
            self._link_chunks = []

    def handle_startendtag(self, tag: str, attrs) -> None:  # type: ignore[override]
        # <input/> and <iframe/> never open a block
        if tag in _SKIP_TAGS:
            return
        self.handle_starttag(tag, attrs)

    def handle_endtag(self, tag: str) -> None:  # type: ignore[override]
        if tag in _SKIP_TAGS:
            if self._skip_depth:
                self._skip_depth -= 1
            return
        if tag == "form":
            self._form = None
        elif tag == "label" and self._label is not None and self._form is not None:
            self._label.text = _squash(" ".join(self._label_chunks))
            self._form.labels.append(self._label)
            self._label = None
        elif tag == "a" and self._link_chunks is not None and self._form is not None:
            self._form.links.append(_squash(" ".join(self._link_chunks)))
            self._link_chunks = None

    def handle_data(self, data: str) -> None:  # type: ignore[override]
        if self._skip_depth or not data or not data.strip():
            return
        self._chunks.append(data)
        if self._label is not None:
            self._label_chunks.append(data)
        if self._link_chunks is not None:
            self._link_chunks.append(data)

    def text(self) -> str:
        return _squash(" ".join(self._chunks))


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def parse_page(url: str, html: str) -> tuple[PageContext, list[FormSnapshot]]:
    """Parse a saved page into a PageContext and its forms."""
    parser = _PageExtractor()
    parser.feed(html or "")
    parser.close()
    page = PageContext(url=url, visible_text=parser.text(), frame_count=parser.frame_count)
    return page, parser.forms


def find_login_form(forms: list[FormSnapshot]) -> FormSnapshot | None:
    """Return the first form containing a password field."""
    for form in forms:
        if form.password_field() is not None:
            return form
    return None
