"""
Streaming reader for FIAS XML dumps.

Each dump is a flat list of elements whose attributes are the table's fields.
Elements are cleared as soon as they are read so memory stays flat on
multi-gigabyte files.
"""

from typing import IO, Iterator, List, Tuple

from lxml import etree


def _local_name(tag: str) -> str:
    return etree.QName(tag).localname


def iter_element_attributes(stream: IO[bytes]) -> Iterator[Tuple[str, List[Tuple[str, str]]]]:
    """
    Yield (element name, attribute pairs) for every element with attributes.

    Args:
        stream: Binary XML stream

    Yields:
        Element local name and its attributes in document order
    """
    context = etree.iterparse(stream, events=("end",), huge_tree=True)

    for _event, elem in context:
        if elem.attrib:
            yield _local_name(elem.tag), [(_local_name(name), value) for name, value in elem.attrib.items()]

        elem.clear()
        while elem.getprevious() is not None:
            del elem.getparent()[0]

    del context
