"""
XLIFF Document - In-memory view of an XLIFF 1.2 localization file.
Only translation units and file metadata are interpreted; every other
element, attribute and comment is carried through untouched on save.
"""

import asyncio
import io
import logging
import os
import threading
import xml.etree.ElementTree as ET
from copy import deepcopy
from xml.sax.saxutils import escape
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..errors import ParseError, WriteError

logger = logging.getLogger(__name__)

XLIFF_NAMESPACE = 'urn:oasis:names:tc:xliff:document:1.2'
CONTEXT_NOTE_ORIGIN = 'lit-localize'

# ElementTree keeps its prefix registry at module level.
_serialize_lock = threading.Lock()


def _local_name(tag: str) -> str:
    return tag.rsplit('}', 1)[-1] if tag.startswith('{') else tag


def _inner_xml(element: ET.Element) -> str:
    """
    Return the content of an element as an escaped XML fragment.

    Inline markup (placeholders and the like) keeps its tags, with namespace
    prefixes removed, so the result always parses back in ``_fill_target``.
    """
    if len(element) == 0:
        return escape(element.text) if element.text else ''

    stripped = _strip_namespaces(element)
    head = escape(stripped.text) if stripped.text else ''
    return head + ''.join(ET.tostring(child, encoding='unicode') for child in stripped)


def _strip_namespaces(element: ET.Element) -> ET.Element:
    copy = deepcopy(element)
    copy.tail = None
    for node in copy.iter():
        if isinstance(node.tag, str):
            node.tag = _local_name(node.tag)
    return copy


class TranslationUnit:
    """
    A view over one <trans-unit> element.

    Reading and writing go straight to the underlying element, so the
    document tree stays the single source of truth.
    """

    def __init__(self, element: ET.Element, namespace: str = ''):
        self.element = element
        self.namespace = namespace

    def _q(self, name: str) -> str:
        return f'{{{self.namespace}}}{name}' if self.namespace else name

    def __repr__(self) -> str:
        return f'TranslationUnit(id={self.id!r})'

    @property
    def id(self) -> str:
        return self.element.get('id', '')

    @property
    def source(self) -> Optional[str]:
        source_elem = self.element.find(self._q('source'))
        if source_elem is None:
            return None
        content = _inner_xml(source_elem)
        return content if content.strip() else None

    @property
    def target(self) -> Optional[str]:
        target_elem = self.element.find(self._q('target'))
        if target_elem is None:
            return None
        return _inner_xml(target_elem)

    @target.setter
    def target(self, text: str):
        target_elem = self.element.find(self._q('target'))
        if target_elem is None:
            target_elem = self._create_target()
        else:
            for child in list(target_elem):
                target_elem.remove(child)
        self._fill_target(target_elem, text)

    @property
    def context(self) -> Optional[str]:
        """Free-text usage hint left by upstream tooling, if any."""
        for note in self.element.findall(self._q('note')):
            if note.get('from') == CONTEXT_NOTE_ORIGIN and note.text and note.text.strip():
                return note.text.strip()
        return None

    @property
    def needs_translation(self) -> bool:
        target = self.target
        return self.source is not None and (target is None or not target.strip())

    def _create_target(self) -> ET.Element:
        target_elem = ET.Element(self._q('target'))
        children = list(self.element)
        source_elem = self.element.find(self._q('source'))
        if source_elem is None:
            self.element.append(target_elem)
            return target_elem

        # Keep the surrounding indentation consistent with <source>.
        target_elem.tail = source_elem.tail
        self.element.insert(children.index(source_elem) + 1, target_elem)
        return target_elem

    def _fill_target(self, target_elem: ET.Element, text: str):
        try:
            fragment = ET.fromstring(f'<target>{text}</target>')
        except ET.ParseError:
            fragment = None

        if fragment is None:
            target_elem.text = text
            return

        target_elem.text = fragment.text
        for child in fragment:
            for node in child.iter():
                if isinstance(node.tag, str) and not node.tag.startswith('{'):
                    node.tag = self._q(node.tag)
            target_elem.append(child)


class XLIFFDocument:
    """
    Parsed XLIFF 1.2 document.

    The target language comes from the first <file> element; units are
    collected from every <file>, including those nested in <group>.
    """

    def __init__(self, path: Path, tree: ET.ElementTree,
                 namespaces: Optional[Dict[str, str]] = None):
        self.path = Path(path)
        self.tree = tree
        self.namespaces = namespaces or {}

        root = tree.getroot()
        self.namespace = root.tag[1:].split('}', 1)[0] if root.tag.startswith('{') else ''

        file_elem = root.find(self._q('file'))
        if file_elem is None:
            raise ParseError("No <file> element found", path=str(self.path))

        self.target_language = file_elem.get('target-language')
        self.source_language = file_elem.get('source-language')
        if not self.target_language:
            raise ParseError("Missing target-language attribute", path=str(self.path))

        self.units: List[TranslationUnit] = [
            TranslationUnit(elem, self.namespace)
            for elem in root.iter(self._q('trans-unit'))
        ]

    def _q(self, name: str) -> str:
        return f'{{{self.namespace}}}{name}' if self.namespace else name

    def __repr__(self) -> str:
        return f'XLIFFDocument(path={str(self.path)!r}, target_language={self.target_language!r})'

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'XLIFFDocument':
        """
        Parse an XLIFF file.

        Args:
            path: Path to the .xlf file

        Returns:
            Parsed document

        Raises:
            ParseError: if the file is unreadable, malformed or not XLIFF
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read document: {e}", path=str(path)) from e

        try:
            parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True, insert_pis=True))
            root = ET.fromstring(data, parser=parser)
            namespaces = cls._collect_namespaces(data)
        except ET.ParseError as e:
            raise ParseError(f"Malformed XML: {e}", path=str(path)) from e

        if _local_name(root.tag) != 'xliff':
            raise ParseError(f"Unexpected root element <{_local_name(root.tag)}>", path=str(path))

        return cls(path, ET.ElementTree(root), namespaces)

    @staticmethod
    def _collect_namespaces(data: bytes) -> Dict[str, str]:
        namespaces = {}
        for _, (prefix, uri) in ET.iterparse(io.BytesIO(data), events=('start-ns',)):
            namespaces.setdefault(prefix, uri)
        return namespaces

    def to_bytes(self) -> bytes:
        """Serialize the whole tree, restoring the original namespace prefixes."""
        buffer = io.BytesIO()
        with _serialize_lock:
            for prefix, uri in self.namespaces.items():
                if prefix == 'xml':
                    continue
                try:
                    ET.register_namespace(prefix, uri)
                except ValueError:
                    logger.debug(f"Cannot register namespace prefix {prefix!r} for {uri}")
            self.tree.write(buffer, encoding='utf-8', xml_declaration=True)
        return buffer.getvalue()

    def save(self, path: Optional[Union[str, Path]] = None):
        """
        Write the document back, replacing the file atomically.

        Raises:
            WriteError: if the file cannot be written
        """
        path = Path(path) if path else self.path
        tmp_path = path.with_name(path.name + '.tmp')
        try:
            tmp_path.write_bytes(self.to_bytes())
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise WriteError(f"Cannot write document: {e}", path=str(path)) from e


def select_untranslated(document: XLIFFDocument) -> List[TranslationUnit]:
    """Units with a source and no (or a blank) target, in document order."""
    return [unit for unit in document.units if unit.needs_translation]


async def load_document(path: Union[str, Path]) -> XLIFFDocument:
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, XLIFFDocument.load, path)


async def save_document(document: XLIFFDocument, path: Optional[Union[str, Path]] = None):
    loop = asyncio.get_event_loop()
    await loop.run_in_executor(None, document.save, path)
