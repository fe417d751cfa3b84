import importlib
import json
import logging
import string
import sys
import textwrap
import typing as t

import pygments
from pygments.formatters import Terminal256Formatter
from pygments.lexers.data import JsonLexer  # pyright: ignore [reportMissingTypeStubs]
from pygments.style import Style

from .json import JSONEncoder
from .style import LogStyle

# attributes every LogRecord carries; anything else on the record came from `extra=`
ReservedKeys = frozenset(logging.LogRecord("", 0, "", 0, None, None, None).__dict__) | {
    "asctime",
    "color_message",
    "message",
}


class ExtraFormatter(logging.Formatter):
    """Delegates to a base formatter, then appends the record's `extra` fields as JSON

    Multi-line messages are indented to line up under the first line. When the
    destination is a terminal the JSON is syntax highlighted.
    """

    def __init__(
        self,
        base: type[logging.Formatter] | str,
        format: str | None,
        datefmt: str | None = None,
        indent: bool | None = None,
        log_colors: dict[str, str] | None = None,
        no_color: bool = False,
        pyg_style: t.Type[Style] = LogStyle,
        style: t.Literal["%", "{", "$"] = "%",
        stream: t.TextIO | None = None,
    ):
        super().__init__(format, datefmt=datefmt, style=style)
        kwargs: dict[str, t.Any] = {"datefmt": datefmt, "style": style}
        if log_colors is not None:
            # colorlog formatters accept a level -> color map
            kwargs["log_colors"] = log_colors
        if isinstance(base, str):
            module, _, name = base.rpartition(".")
            base = t.cast(type[logging.Formatter], getattr(importlib.import_module(module), name))
        self.base = base(format, **kwargs)
        self.indent = bool(indent)
        self.no_color = no_color
        self.pyg_style = pyg_style
        self.stream = stream or sys.stderr
        self.encoder = JSONEncoder()

    def extra(self, record: logging.LogRecord) -> dict[str, t.Any]:
        return {k: v for k, v in record.__dict__.items() if k not in ReservedKeys}

    def format(self, record: logging.LogRecord) -> str:
        if "color_message" in record.__dict__:
            record.msg = record.__dict__.pop("color_message")

        msg = record.getMessage()
        if "\n" in msg:
            formatted = self.base.format(record)
            idx = formatted.find(msg)
            indent = " " * len([c for c in formatted[:idx] if c in string.printable])
            line, *lines = msg.splitlines()
            body = textwrap.indent("\n".join(lines), prefix=indent)
            record.msg = record.message = f"{line}\n{body}"
            record.args = None
        message = self.base.format(record)

        extra = self.extra(record)
        if not extra:
            return message

        js = json.dumps(extra, sort_keys=True, indent=(4 if self.indent else None), default=self.encoder.default)
        if not self.no_color and self.stream.isatty():
            hl = pygments.highlight  # pyright: ignore [reportUnknownMemberType, reportUnknownVariableType]
            js = hl(js, JsonLexer(), Terminal256Formatter[str](style=self.pyg_style), None)
        return message + " " + js.strip()
