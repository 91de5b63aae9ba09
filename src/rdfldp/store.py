import logging
import os
import threading
from contextlib import contextmanager, ExitStack
from typing import Any, Iterator, Optional

from rdflib import Dataset, Graph, URIRef
from rdflib.plugin import PluginException
from rdflib.term import Node

from rdfldp.exceptions import GraphStoreError
from rdfldp.graph import clear, document_uri
from rdfldp.namespaces import ldp, prov, rdf
from rdfldp.utils import load_config

logger = logging.getLogger(__name__)

METAGRAPH_SUFFIX = '#meta'


class GraphStore:
    """Named graph storage for LDP resources, backed by an rdflib `Dataset`.

    Each resource has two named graphs: its state graph, named with the
    resource URI, and its metagraph, named with the resource URI plus
    `METAGRAPH_SUFFIX`. Bodies of non-RDF sources are kept in memory,
    keyed by resource URI."""

    @classmethod
    def from_config_file(cls, filename: str | os.PathLike) -> 'GraphStore':
        return cls.from_config(config=load_config(filename).get('STORE', {}))

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> 'GraphStore':
        store_type = config.get('TYPE', 'Memory')
        try:
            dataset = Dataset(store=store_type)
        except PluginException as e:
            raise GraphStoreError(f'Unknown rdflib store type "{store_type}"') from e
        path = config.get('PATH')
        if path:
            logger.info(f'Opening {store_type} store at {path}')
            dataset.open(str(path), create=True)
        else:
            logger.info(f'Using {store_type} store')
        return cls(dataset=dataset)

    def __init__(self, dataset: Dataset = None):
        self.dataset = dataset if dataset is not None else Dataset()
        self._bodies: dict[URIRef, bytes] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    @staticmethod
    def metagraph_uri(uri: Node | str) -> URIRef:
        return URIRef(str(uri) + METAGRAPH_SUFFIX)

    def graph(self, uri: Node | str) -> Graph:
        """The named graph with the identifier `uri`. Statements added to the
        returned graph are stored in this store."""
        return Graph(store=self.dataset.store, identifier=URIRef(uri))

    def metagraph(self, uri: Node | str) -> Graph:
        return self.graph(self.metagraph_uri(uri))

    def remove_graph(self, uri: Node | str):
        graph = self.graph(uri)
        clear(graph)
        self.dataset.remove_graph(graph)

    def interaction_model(self, uri: Node | str) -> Optional[URIRef]:
        """The `rdf:type` recorded in the metagraph of `uri`, or `None` if there
        is no such resource."""
        return self.metagraph(uri).value(URIRef(uri), rdf.type)

    def is_tombstone(self, uri: Node | str) -> bool:
        return (URIRef(uri), prov.invalidatedAtTime, None) in self.metagraph(uri)

    def containers_of(self, uri: Node | str) -> set[URIRef]:
        """URIs of every container holding a containment statement for `uri`.
        Only statements in a container's own metagraph count; `ldp:contains`
        statements in state graphs are client data."""
        member = URIRef(uri)
        candidates = {s for s, _, _, _ in self.dataset.quads((None, ldp.contains, member, None))}
        return {s for s in candidates if (s, ldp.contains, member) in self.metagraph(s)}

    def get_body(self, uri: Node | str) -> bytes:
        return self._bodies.get(URIRef(uri), b'')

    def put_body(self, uri: Node | str, data: bytes):
        self._bodies[URIRef(uri)] = data

    def delete_body(self, uri: Node | str):
        self._bodies.pop(URIRef(uri), None)

    def _get_lock(self, identifier: str) -> threading.RLock:
        with self._locks_guard:
            if identifier not in self._locks:
                self._locks[identifier] = threading.RLock()
            return self._locks[identifier]

    @contextmanager
    def lock(self, *uris: Node | str) -> Iterator[list[str]]:
        """Acquire the locks for every given resource, in sorted order of their
        identifiers. Fragment identifiers are ignored, so `<a#b>` shares the lock
        of `<a>`. The locks are reentrant, so code already holding a lock may
        ask for it again.

        Any code that needs more than one lock must ask for all of them in a
        single call, so that two requests locking the same resources always
        acquire them in the same order."""
        identifiers = sorted({str(document_uri(uri)) for uri in uris})
        with ExitStack() as stack:
            for identifier in identifiers:
                logger.debug(f'Acquiring lock for {identifier}')
                stack.enter_context(self._get_lock(identifier))
            yield identifiers
