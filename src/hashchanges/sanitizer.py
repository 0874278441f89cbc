# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Whitelist HTML sanitizer for profile fields rendered as markup.

Only ``<body>`` survives, and on it only ``onhashchange``. Everything else is
dropped: other tags lose their markup but keep their text, ``<script>`` loses
its content as well, comments and declarations disappear. Text and attribute
values are escaped, so the output can be fed back in unchanged.

Tree-building cleaners reparent or discard ``<body>`` inside a fragment, so
this works on the token stream instead.
"""

from __future__ import annotations

from html.parser import HTMLParser
from typing import Dict, FrozenSet, List, Optional, Tuple

from markupsafe import escape

ALLOWED_TAGS: Dict[str, FrozenSet[str]] = {
    "body": frozenset({"onhashchange"}),
}
STRIP_CONTENT_TAGS: FrozenSet[str] = frozenset({"script"})


class _Sanitizer(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._out: List[str] = []
        self._skip_depth = 0

    def result(self) -> str:
        return "".join(self._out)

    def _start(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        allowed = ALLOWED_TAGS.get(tag)
        if allowed is None:
            return
        parts = [tag]
        seen = set()
        for name, value in attrs:
            if name not in allowed or name in seen:
                continue
            seen.add(name)
            parts.append(f'{name}="{escape(value or "")}"')
        self._out.append("<" + " ".join(parts) + ">")

    def handle_starttag(self, tag, attrs):
        if tag in STRIP_CONTENT_TAGS:
            self._skip_depth += 1
            return
        if not self._skip_depth:
            self._start(tag, attrs)

    def handle_startendtag(self, tag, attrs):
        if tag in STRIP_CONTENT_TAGS or self._skip_depth:
            return
        self._start(tag, attrs)

    def handle_endtag(self, tag):
        if tag in STRIP_CONTENT_TAGS:
            self._skip_depth = max(0, self._skip_depth - 1)
            return
        if not self._skip_depth and tag in ALLOWED_TAGS:
            self._out.append(f"</{tag}>")

    def handle_data(self, data):
        if not self._skip_depth:
            self._out.append(str(escape(data)))

    # Comments, doctypes, processing instructions and CDATA sections are
    # dropped by leaving the remaining handlers as no-ops.


def sanitize(text: Optional[str]) -> str:
    """Return ``text`` reduced to the whitelist. ``None`` becomes ``""``."""
    if not text:
        return ""
    parser = _Sanitizer()
    parser.feed(str(text))
    parser.close()
    return parser.result()
