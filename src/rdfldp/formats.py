"""Lookup of rdflib parsers and serializers by media type."""

import logging
from typing import IO, Optional
from xml.sax import SAXParseException

from rdflib import Graph, plugin
from rdflib.exceptions import ParserError
from rdflib.parser import Parser
from rdflib.plugin import PluginException
from rdflib.serializer import Serializer
from werkzeug.http import parse_options_header

from rdfldp.graph import copy_triples
from rdfldp.namespaces import get_manager

logger = logging.getLogger(__name__)

READERS = {
    'text/turtle': 'turtle',
    'application/x-turtle': 'turtle',
    'application/n-triples': 'nt',
    'text/n3': 'n3',
    'application/rdf+xml': 'xml',
    'application/ld+json': 'json-ld',
}
"""Media types accepted as RDF request bodies, and the rdflib parser for each."""

WRITERS = {
    'text/turtle': 'turtle',
    'application/n-triples': 'nt',
    'text/n3': 'n3',
    'application/rdf+xml': 'xml',
    'application/ld+json': 'json-ld',
}
"""Media types available for RDF responses, and the rdflib serializer for each."""

WRITABLE_TYPES = list(WRITERS.keys())

# the rdflib parsers do not share a common exception class
PARSE_ERRORS = (ParserError, SyntaxError, SAXParseException, ValueError)


def media_type(content_type: Optional[str]) -> str:
    """Strip any parameters (e.g., `charset`) from a `Content-Type` value and
    return the lowercased media type."""
    if not content_type:
        return ''
    value, _ = parse_options_header(str(content_type))
    return value.lower()


def get_reader(content_type: Optional[str]) -> Optional[str]:
    """Returns the name of the rdflib parser plugin for `content_type`, or
    `None` if the media type is not readable as RDF."""
    name = READERS.get(media_type(content_type))
    if name is None:
        return None
    try:
        plugin.get(name, Parser)
    except PluginException:
        logger.warning(f'No rdflib parser plugin "{name}" is installed')
        return None
    return name


def get_writer(content_type: Optional[str]) -> Optional[str]:
    """Returns the name of the rdflib serializer plugin for `content_type`, or
    `None` if the media type is not writable."""
    name = WRITERS.get(media_type(content_type))
    if name is None:
        return None
    try:
        plugin.get(name, Serializer)
    except PluginException:
        logger.warning(f'No rdflib serializer plugin "{name}" is installed')
        return None
    return name


def read_input(source: IO | bytes | str | None) -> bytes:
    """Read the full contents of a request body, which may be a stream, a
    byte string, a string, or `None`."""
    if source is None:
        return b''
    if hasattr(source, 'read'):
        source = source.read()
    if isinstance(source, str):
        return source.encode()
    return bytes(source)


def parse(data: bytes, reader: str, base: str) -> Graph:
    """Parse `data` with the named rdflib parser, resolving relative IRIs against
    `base`. An empty body is an empty graph. Parser errors propagate as one of
    the `PARSE_ERRORS`."""
    graph = Graph()
    if not data.strip():
        return graph
    logger.debug(f'Parsing {len(data)} bytes as "{reader}" with base {base}')
    return graph.parse(data=data, format=reader, publicID=base)


def serialize(graph: Graph, content_type: str) -> bytes:
    """Serialize `graph` in the given (writable) media type."""
    writer = get_writer(content_type)
    if writer is None:
        raise ValueError(f'Cannot serialize as "{content_type}"')
    output = Graph()
    output.namespace_manager = get_manager(output)
    copy_triples(graph, output)
    return output.serialize(format=writer, encoding='utf-8')
