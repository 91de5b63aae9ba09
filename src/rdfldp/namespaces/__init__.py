"""Useful namespaces for use with `rdflib` code."""

import sys
from typing import Optional

from rdflib import Namespace, Graph
from rdflib.namespace import NamespaceManager

dc = Namespace('http://purl.org/dc/elements/1.1/')
"""[Dublin Core Elements 1.1](https://www.dublincore.org/specifications/dublin-core/dcmi-terms/#section-3)"""

dcterms = Namespace('http://purl.org/dc/terms/')
"""[Dublin Core Terms](https://www.dublincore.org/specifications/dublin-core/dcmi-terms/#section-2)"""

ex = Namespace('http://www.example.org/terms/')
"""Example Namespace"""

ldp = Namespace('http://www.w3.org/ns/ldp#')
"""[Linked Data Platform](https://www.w3.org/TR/ldp/)"""

prov = Namespace('http://www.w3.org/ns/prov#')
"""[Provenance Ontology (PROV-O)](https://www.w3.org/TR/prov-o/)"""

rdf = Namespace('http://www.w3.org/1999/02/22-rdf-syntax-ns#')
"""[RDF](https://www.w3.org/TR/rdf11-schema/)"""

rdfs = Namespace('http://www.w3.org/2000/01/rdf-schema#')
"""[RDF Schema](https://www.w3.org/TR/rdf11-schema/)"""

xsd = Namespace('http://www.w3.org/2001/XMLSchema#')
"""[XML Schema Datatypes](https://www.w3.org/TR/xmlschema-2/#built-in-datatypes)"""


def get_manager(graph: Optional[Graph] = None) -> NamespaceManager:
    """Scan this module's attributes for `Namespace` objects, and bind them
    to a prefix corresponding to their attribute name defined above."""
    if graph is None:
        graph = Graph()
    nsm = NamespaceManager(graph)
    prefixes = {attr: value for attr, value in sys.modules[__name__].__dict__.items() if isinstance(value, Namespace)}
    for prefix, ns in prefixes.items():
        nsm.bind(prefix, ns)
    return nsm


namespace_manager = get_manager()
