from io import BytesIO

import pytest
from rdflib import Graph, Literal, URIRef
from rdflib.compare import isomorphic

from rdfldp.formats import (
    PARSE_ERRORS, get_reader, get_writer, media_type, parse, read_input, serialize,
)
from rdfldp.namespaces import dcterms

BASE = 'http://ex.org/moomin'


@pytest.mark.parametrize(
    ('content_type', 'expected'),
    [
        ('text/turtle', 'text/turtle'),
        ('text/turtle; charset=utf-8', 'text/turtle'),
        ('Application/N-Triples', 'application/n-triples'),
        (None, ''),
        ('', ''),
    ]
)
def test_media_type(content_type, expected):
    assert media_type(content_type) == expected


@pytest.mark.parametrize(
    ('content_type', 'expected'),
    [
        ('text/turtle', 'turtle'),
        ('text/turtle;charset=utf-8', 'turtle'),
        ('application/n-triples', 'nt'),
        ('application/ld+json', 'json-ld'),
        ('application/rdf+xml', 'xml'),
        ('text/plain', None),
        ('image/png', None),
        (None, None),
    ]
)
def test_get_reader(content_type, expected):
    assert get_reader(content_type) == expected


def test_get_writer():
    assert get_writer('text/turtle') == 'turtle'
    assert get_writer('text/html') is None


@pytest.mark.parametrize(
    ('source', 'expected'),
    [
        (None, b''),
        (b'abc', b'abc'),
        ('abc', b'abc'),
        (BytesIO(b'abc'), b'abc'),
    ]
)
def test_read_input(source, expected):
    assert read_input(source) == expected


def test_parse_resolves_relative_iris():
    graph = parse(b'<> <http://purl.org/dc/terms/title> "Moomin" .', 'turtle', base=BASE)
    assert (URIRef(BASE), dcterms.title, Literal('Moomin')) in graph


def test_parse_empty():
    assert len(parse(b'  \n', 'json-ld', base=BASE)) == 0


def test_parse_error():
    with pytest.raises(PARSE_ERRORS):
        parse(b'this is not turtle', 'turtle', base=BASE)


def test_serialize_binds_prefixes():
    graph = Graph()
    graph.add((URIRef(BASE), dcterms.title, Literal('Moomin')))
    graph.add((URIRef(BASE), dcterms.creator, URIRef('http://ex.org/tove')))
    data = serialize(graph, 'text/turtle')
    assert b'@prefix dcterms:' in data
    assert isomorphic(parse(data, 'turtle', base=BASE), graph)


def test_serialize_unknown_type():
    with pytest.raises(ValueError):
        serialize(Graph(), 'text/html')
