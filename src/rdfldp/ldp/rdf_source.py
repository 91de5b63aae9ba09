import logging
from http import HTTPMethod, HTTPStatus
from typing import Any, IO, Mapping, Optional

from pyparsing import ParseException
from rdflib import Graph, URIRef
from rdflib.plugins.sparql import prepareUpdate

from rdfldp.exceptions import BadRequest, UnsupportedMediaType
from rdfldp.formats import PARSE_ERRORS, get_reader, media_type, parse, read_input
from rdfldp.graph import clear, copy_triples, graph_digest
from rdfldp.ldp.resource import Handler, Resource, Response, request_body
from rdfldp.namespaces import ldp
from rdfldp.store import GraphStore

logger = logging.getLogger(__name__)

SPARQL_UPDATE = 'application/sparql-update'


class RDFSource(Resource):
    """An [LDP RDF Source](https://www.w3.org/TR/ldp/#ldprs): a resource whose
    state is an RDF graph.

    The state is kept in `graph`, a named graph with the same name as the
    resource. Server-managed statements are kept in `metagraph` and are never
    part of `graph`.
    """
    model = ldp.RDFSource
    is_rdf_source = True

    def __init__(self, subject_uri: URIRef | str, store: GraphStore = None):
        super().__init__(subject_uri, store)
        self.graph: Graph = self.store.graph(self.subject_uri)

    @property
    def etag(self) -> str:
        """Weak validator for the state graph; recomputed on every access."""
        return graph_digest(self.graph)

    def matches(self, tag: str) -> bool:
        # the digest always ends with "==" followed by the statement count,
        # which is cheaper to check than recomputing the digest
        if tag.rsplit('==', 1)[-1] != str(len(self.graph)):
            return False
        return tag == self.etag

    def parse_graph(self, input: IO | bytes | str | None, content_type: Optional[str]) -> Graph:
        """Parse `input` as RDF in the given content type, resolving relative
        IRIs against this resource's URI. Does not modify the resource.

        :raises UnsupportedMediaType: if there is no RDF reader for `content_type`
        :raises BadRequest: if the reader cannot parse `input`
        """
        reader = get_reader(content_type)
        if reader is None:
            raise UnsupportedMediaType(
                f'Cannot read "{content_type}" as RDF',
                content_type=str(content_type),
            )
        try:
            return parse(read_input(input), reader, base=str(self.subject_uri))
        except PARSE_ERRORS as e:
            logger.warning(f'Unable to parse request body for {self} as {content_type}: {e}')
            raise BadRequest(f'Unable to parse request body as {media_type(content_type)}: {e}') from e

    def to_response(self, environ: Mapping[str, Any] = None) -> Graph:
        """A copy of the state graph, detached from the store."""
        response = Graph()
        copy_triples(self.graph, response)
        return response

    def _parse_input(self, input, content_type) -> Graph:
        statements = self.parse_graph(input, content_type)
        self._validate_state(statements)
        return statements

    def _validate_state(self, statements: Graph):
        """Raise a `RequestError` if `statements` is not acceptable as the new
        state of this resource."""
        pass

    def _apply_input(self, statements: Graph, replace: bool):
        if replace:
            clear(self.graph)
        copy_triples(statements, self.graph)

    def _discard_state(self):
        self.store.remove_graph(self.subject_uri)

    def handlers(self) -> dict[HTTPMethod, Handler]:
        return {
            **super().handlers(),
            HTTPMethod.PUT: self._put,
            HTTPMethod.PATCH: self._patch,
        }

    def _patch(self, status, headers, environ) -> Response:
        body, content_type = request_body(environ)
        self._require_existence()
        if media_type(content_type) != SPARQL_UPDATE:
            raise UnsupportedMediaType(f'PATCH requires {SPARQL_UPDATE}', content_type=str(content_type))
        self._check_precondition(environ)

        sparql_text = read_input(body).decode()
        logger.debug(f'SPARQL Update Query for {self}: {sparql_text}')
        try:
            sparql_update = prepareUpdate(sparql_text, base=str(self.subject_uri))
        except ParseException as e:
            raise BadRequest(f'SPARQL Update Query parsing error: {e}') from e

        # apply the update to a copy, so an unacceptable result leaves the
        # stored graph untouched
        statements = self.to_response()
        statements.update(sparql_update)
        self._validate_state(statements)
        self._apply_input(statements, replace=True)
        self.set_last_modified()
        logger.info(f'Patched {self}')
        return HTTPStatus.NO_CONTENT, headers, None
