from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from .errors import UnbalancedBracket, UnterminatedValue

# Characters that end an SD-ID or PARAM-NAME
NAME_TERMINATORS = frozenset(' ]="')

# Characters a backslash may escape inside PARAM-VALUE (RFC 5424 section 6.3.3)
ESCAPABLE = frozenset('"\\]')


@dataclass(frozen=True)
class SDElement:
    """One [SD-ID key="value" ...] element"""
    id: str
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __hash__(self) -> int:
        # MappingProxyType is unhashable, hash its items instead
        return hash((self.id, tuple(self.params.items())))

    def to_dict(self) -> Dict[str, object]:
        return {'id': self.id, 'params': dict(self.params)}


class StructuredDataParser:
    """
    Parse the STRUCTURED-DATA part of an RFC 5424 message.

    Elements sharing an SD-ID are kept as separate entries unless
    merge_duplicate_ids is set, in which case their parameters are folded
    into the first occurrence (later values win).
    """

    def __init__(self, merge_duplicate_ids: bool = False) -> None:
        self.merge_duplicate_ids: bool = merge_duplicate_ids

    def parse(self, text: str, start: int = 0) -> Tuple[Tuple[SDElement, ...], int]:
        """
        Parse consecutive elements starting at text[start], which must be '['.
        Returns the elements and the offset just past the last ']'.
        """
        if start >= len(text) or text[start] != '[':
            raise UnbalancedBracket("expected '['", start)

        elements: List[Tuple[str, Dict[str, str]]] = []
        pos = start
        while pos < len(text) and text[pos] == '[':
            sd_id, params, pos = self._parse_element(text, pos)
            elements.append((sd_id, params))

        if self.merge_duplicate_ids:
            elements = self._merge(elements)

        return tuple(
            SDElement(sd_id, MappingProxyType(params)) for sd_id, params in elements
        ), pos

    def _parse_element(self, text: str, pos: int) -> Tuple[str, Dict[str, str], int]:
        """Internal: Parse one element, pos points at its '['"""
        sd_id, pos = self._read_name(text, pos + 1)
        if not sd_id:
            raise UnbalancedBracket('missing SD-ID', pos)

        params: Dict[str, str] = {}
        while True:
            pos = self._skip_spaces(text, pos)
            if pos >= len(text):
                raise UnbalancedBracket(f'element {sd_id!r} is never closed', pos)
            if text[pos] == ']':
                return sd_id, params, pos + 1

            name, pos = self._read_name(text, pos)
            if not name:
                raise UnbalancedBracket(f'unexpected {text[pos]!r} in element {sd_id!r}', pos)
            if pos >= len(text) or text[pos] != '=':
                raise UnbalancedBracket(f"expected '=' after {name!r}", pos)
            pos += 1
            if pos >= len(text) or text[pos] != '"':
                raise UnbalancedBracket(f'expected opening quote for {name!r}', pos)

            value, pos = self._read_value(text, pos + 1)
            params[name] = value

    @staticmethod
    def _read_name(text: str, pos: int) -> Tuple[str, int]:
        end = pos
        while end < len(text) and text[end] not in NAME_TERMINATORS:
            end += 1
        return text[pos:end], end

    @staticmethod
    def _skip_spaces(text: str, pos: int) -> int:
        while pos < len(text) and text[pos] == ' ':
            pos += 1
        return pos

    @staticmethod
    def _read_value(text: str, pos: int) -> Tuple[str, int]:
        """Internal: Read a quoted value, pos is just after the opening quote"""
        start = pos
        chunks: List[str] = []
        while pos < len(text):
            char = text[pos]
            if char == '"':
                return ''.join(chunks), pos + 1
            if char == '\\' and pos + 1 < len(text) and text[pos + 1] in ESCAPABLE:
                chunks.append(text[pos + 1])
                pos += 2
                continue
            chunks.append(char)
            pos += 1

        raise UnterminatedValue('unterminated parameter value', start)

    @staticmethod
    def _merge(elements: List[Tuple[str, Dict[str, str]]]) -> List[Tuple[str, Dict[str, str]]]:
        merged: Dict[str, Dict[str, str]] = {}
        for sd_id, params in elements:
            merged.setdefault(sd_id, {}).update(params)
        return list(merged.items())


def parse_structured_data(text: str, start: int = 0,
                          merge_duplicate_ids: bool = False) -> Tuple[Tuple[SDElement, ...], int]:
    """Parse structured data with a one-off parser"""
    return StructuredDataParser(merge_duplicate_ids).parse(text, start)
