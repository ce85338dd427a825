from __future__ import annotations

import codecs
from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Union

from .errors import InvalidOptionsError

SUPPORTED_DELIMITERS = (",", ";", "|", "\t")
_NEWLINES = ("\n", "\r")


@dataclass(frozen=True)
class CSVOptions:
    """Dialect and decoding settings shared by the batch and streaming parsers."""

    delimiter: str = ","
    quote_char: str = '"'
    skip_empty_lines: bool = False
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if self.delimiter not in SUPPORTED_DELIMITERS:
            raise InvalidOptionsError(
                f"Unsupported delimiter {self.delimiter!r}; expected one of {SUPPORTED_DELIMITERS!r}"
            )
        if len(self.quote_char) != 1:
            raise InvalidOptionsError(f"quote_char must be a single character, got {self.quote_char!r}")
        if self.quote_char == self.delimiter:
            raise InvalidOptionsError("quote_char and delimiter must differ")
        if self.quote_char in _NEWLINES:
            raise InvalidOptionsError("quote_char cannot be a line terminator")
        try:
            codecs.lookup(self.encoding)
        except LookupError as exc:
            raise InvalidOptionsError(f"Unknown encoding {self.encoding!r}") from exc

    def to_dict(self) -> Dict[str, Any]:
        """Serialize options to a dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CSVOptions":
        """Build options from a mapping, ignoring unknown keys."""
        known = {key: data[key] for key in ("delimiter", "quote_char", "skip_empty_lines", "encoding") if key in data}
        return cls(**known)

    @classmethod
    def coerce(cls, options: "OptionsLike") -> "CSVOptions":
        if options is None:
            return cls()
        if isinstance(options, CSVOptions):
            return options
        if isinstance(options, Mapping):
            return cls.from_dict(options)
        raise InvalidOptionsError(f"Unsupported options type: {type(options).__name__}")


OptionsLike = Union[CSVOptions, Mapping[str, Any], None]
