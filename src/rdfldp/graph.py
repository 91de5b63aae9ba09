from base64 import b64encode
from hashlib import md5

from rdflib import Graph, URIRef, BNode
from rdflib.term import Node
from urlobject import URLObject


def copy_triples(src: Graph, dest: Graph):
    """Add all triples in `src` to `dest`."""
    for triple in src:
        dest.add(triple)


def clear(graph: Graph):
    """Remove every triple from `graph`, which is modified in place."""
    graph.remove((None, None, None))


def document_uri(node: Node) -> URIRef:
    """Strip the fragment identifier (if any) from `node`, returning the URI of
    the document that defines it."""
    return URIRef(str(URLObject(str(node)).without_fragment()))


def graph_digest(graph: Graph) -> str:
    """Weak content validator for `graph`. Hashes the sorted, deduplicated
    set of non-blank subjects and appends the number of statements.

    Graphs that differ only in their blank node statements, but have the
    same statement count, produce the same digest."""
    subjects = sorted({str(s) for s in graph.subjects() if not isinstance(s, BNode)})
    digest = b64encode(md5(''.join(subjects).encode()).digest()).decode()
    return f'{digest}{len(graph)}'
