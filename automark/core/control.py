"""
Parser for Debian control-format package metadata.

The text comes from dpkg-query (or apt-cache show) and holds one block per
package, blocks being separated by a blank line:

    Package: foo
    Depends: libc6 (>= 2.34), libbar1 | libbar2,
     libbaz
    Provides: foo-virtual

Format:
    Label: value       - Start of a field
     continuation      - Leading whitespace continues the previous field
    (blank line)       - End of the current block

Only the package identity, the three dependency kinds that keep a package
installed (Pre-Depends, Depends, Recommends) and Provides are kept.
Alternatives ("a | b") are flattened into independent dependencies.
"""

import re
from pathlib import Path
from typing import Dict, List, Optional, Set
from dataclasses import dataclass, field


# Labels are compared lowercased
IDENTITY_FIELD = 'package'
DEPENDENCY_FIELDS = frozenset({'predepends', 'pre-depends', 'depends', 'recommends'})
PROVIDES_FIELD = 'provides'


@dataclass
class DependencyRecord:
    """Dependencies and provides of one concrete package."""
    name: str
    dependencies: Set[str] = field(default_factory=set)
    provided_names: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.dependencies and not self.provided_names


# Parser states
_BETWEEN_BLOCKS = 'between'
_IN_BLOCK = 'block'
_IN_FIELD = 'field'


def parse_field_value(value: str) -> List[str]:
    """Split a dependency or provides value into package names.

    Args:
        value: String like "libc6 (>= 2.34), libfoo | libbar:any"

    Returns:
        Unique names in first-seen order, e.g. ['libc6', 'libfoo', 'libbar']
    """
    value = ControlParser.VERSION_PATTERN.sub('', value)
    value = ControlParser.WHITESPACE_PATTERN.sub('', value)

    names = []
    seen = set()
    for token in ControlParser.SEPARATOR_PATTERN.split(value):
        # Drop multiarch qualifier (python3:any, libc6:amd64)
        token = token.split(':', 1)[0]
        if token and token not in seen:
            seen.add(token)
            names.append(token)
    return names


class ControlParser:
    """Parse control-format text into DependencyRecord objects."""

    FIELD_PATTERN = re.compile(r'^([A-Za-z][A-Za-z0-9-]*):(.*)$')
    CONTINUATION_PATTERN = re.compile(r'^\s+\S')
    VERSION_PATTERN = re.compile(r'\([^)]*\)')
    WHITESPACE_PATTERN = re.compile(r'\s+')
    SEPARATOR_PATTERN = re.compile(r'[,|]')

    def __init__(self):
        self.records: Dict[str, DependencyRecord] = {}

    def parse(self, path: Path) -> Dict[str, DependencyRecord]:
        """Parse a control-format file.

        Args:
            path: File holding dpkg-query or apt-cache output

        Returns:
            Dict mapping package name to DependencyRecord
        """
        content = Path(path).read_text(encoding='utf-8', errors='replace')
        return self.parse_content(content)

    def parse_content(self, content: str) -> Dict[str, DependencyRecord]:
        """Parse control-format text.

        Malformed lines are skipped. Blocks without a Package field, or with
        neither dependencies nor provides, produce no record.

        Args:
            content: Text made of blank-line separated blocks

        Returns:
            Dict mapping package name to DependencyRecord
        """
        self.records = {}
        state = _BETWEEN_BLOCKS
        fields: Dict[str, str] = {}
        current_label: Optional[str] = None

        for line in content.splitlines():
            if not line.strip():
                if state != _BETWEEN_BLOCKS:
                    self._finish_block(fields)
                    fields = {}
                    current_label = None
                state = _BETWEEN_BLOCKS
                continue

            if self.CONTINUATION_PATTERN.match(line):
                # Only meaningful while reading a field we keep
                if state == _IN_FIELD and current_label is not None:
                    fields[current_label] += ',' + line.strip()
                continue

            match = self.FIELD_PATTERN.match(line)
            if not match:
                # Garbage line: stay in the block, forget the field
                if state == _IN_FIELD:
                    state = _IN_BLOCK
                current_label = None
                continue

            label = match.group(1).lower()
            value = match.group(2).strip()
            state = _IN_FIELD

            if label == IDENTITY_FIELD or label == PROVIDES_FIELD:
                current_label = label
            elif label in DEPENDENCY_FIELDS:
                # All dependency kinds end up in the same set
                current_label = 'depends'
            else:
                current_label = None
                continue

            if current_label in fields:
                fields[current_label] += ',' + value
            else:
                fields[current_label] = value

        if state != _BETWEEN_BLOCKS:
            self._finish_block(fields)

        return self.records

    def _finish_block(self, fields: Dict[str, str]):
        """Turn the fields of one block into a record."""
        names = parse_field_value(fields.get(IDENTITY_FIELD, ''))
        if not names:
            return

        record = DependencyRecord(
            name=names[0],
            dependencies=set(parse_field_value(fields.get('depends', ''))),
            provided_names=parse_field_value(fields.get(PROVIDES_FIELD, '')),
        )
        if record.is_empty():
            return

        existing = self.records.get(record.name)
        if existing is None:
            self.records[record.name] = record
            return

        existing.dependencies |= record.dependencies
        for provided in record.provided_names:
            if provided not in existing.provided_names:
                existing.provided_names.append(provided)


def parse_control(content: str) -> Dict[str, DependencyRecord]:
    """Parse control-format text (convenience wrapper)."""
    return ControlParser().parse_content(content)


def parse_control_file(path: Path) -> Dict[str, DependencyRecord]:
    """Parse a control-format file (convenience wrapper)."""
    return ControlParser().parse(path)
