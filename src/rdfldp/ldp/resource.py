import logging
from datetime import datetime, timezone
from http import HTTPMethod, HTTPStatus
from io import BytesIO
from typing import Any, Callable, IO, Mapping, Optional, Type

from rdflib import Graph, Literal, URIRef
from requests.utils import parse_header_links
from werkzeug.http import http_date, parse_etags, quote_etag

from rdfldp.exceptions import (
    Conflict, Gone, MethodNotAllowed, NotFound, PreconditionFailed, UnsupportedInteractionModel,
)
from rdfldp.formats import get_reader, read_input
from rdfldp.graph import clear, graph_digest
from rdfldp.namespaces import dcterms, ldp, prov, rdf
from rdfldp.store import GraphStore

logger = logging.getLogger(__name__)

INTERACTION_MODELS: dict[URIRef, Type['Resource']] = {}
"""Lookup table from interaction model URI to the class implementing it."""

Response = tuple[HTTPStatus, dict[str, str], Any]
Handler = Callable[[HTTPStatus, dict[str, str], Mapping[str, Any]], Response]


def now() -> datetime:
    return datetime.now(timezone.utc)


def request_body(environ: Mapping[str, Any]) -> tuple[IO | bytes | None, Optional[str]]:
    """Returns the body and declared content type from a WSGI environ."""
    return environ.get('wsgi.input'), environ.get('CONTENT_TYPE')


def requested_model(environ: Mapping[str, Any]) -> Optional[Type['Resource']]:
    """Returns the interaction model class named by a `Link: <...>; rel="type"`
    request header, or `None` if the request does not name one. When more than
    one known model is named, the most specific one wins.

    :raises UnsupportedInteractionModel: if an LDP type is named that this
        server does not implement (e.g., `ldp:IndirectContainer`)
    """
    if not environ.get('HTTP_LINK'):
        return None
    models = []
    for link in parse_header_links(environ['HTTP_LINK']):
        if link.get('rel') != 'type':
            continue
        type_uri = URIRef(link['url'])
        if type_uri in INTERACTION_MODELS:
            models.append(INTERACTION_MODELS[type_uri])
        elif type_uri.startswith(ldp) and type_uri != ldp.Resource:
            raise UnsupportedInteractionModel(f'Interaction model {type_uri} is not supported', model=type_uri)
    if not models:
        return None
    return max(models, key=lambda cls: len(cls.__mro__))


def interaction_model(environ: Mapping[str, Any]) -> Type['Resource']:
    """Pick the class for a resource being created by a request. An explicit
    `Link` type header wins; otherwise the request body is treated as an RDF
    source if there is an RDF reader for its content type, and as a non-RDF
    source if there is not."""
    model = requested_model(environ)
    if model is not None:
        return model
    if get_reader(environ.get('CONTENT_TYPE')) is not None:
        return INTERACTION_MODELS[ldp.RDFSource]
    return INTERACTION_MODELS[ldp.NonRDFSource]


def find_resource(uri: URIRef | str, store: GraphStore) -> 'Resource':
    """Load the resource at `uri` as an instance of the class for its recorded
    interaction model.

    :raises Gone: if the resource has been destroyed
    :raises NotFound: if there is no resource at `uri`
    """
    model = store.interaction_model(uri)
    if model is None:
        if store.is_tombstone(uri):
            raise Gone(f'{uri} has been deleted', uri=str(uri))
        raise NotFound(f'{uri} not found', uri=str(uri))
    try:
        resource_class = INTERACTION_MODELS[model]
    except KeyError as e:
        raise NotFound(f'{uri} has unknown interaction model {model}', uri=str(uri)) from e
    return resource_class(uri, store)


class Resource:
    """An [LDP Resource](https://www.w3.org/TR/ldp/#ldpr).

    Server-managed statements about the resource (its interaction model,
    modification time, and for containers, containment) are kept in a
    separate named graph, the `metagraph`, which is never part of the
    representation sent to clients.

    Concrete subclasses register their interaction model URI (the `model`
    class attribute) in `INTERACTION_MODELS` when they are defined. Pass
    `register=False` in the class statement for abstract subclasses.
    """
    model: URIRef = ldp.Resource
    is_rdf_source = False
    is_non_rdf_source = False
    is_container = False

    def __init_subclass__(cls, register: bool = True, **kwargs):
        super().__init_subclass__(**kwargs)
        if register:
            INTERACTION_MODELS[cls.model] = cls

    @classmethod
    def to_uri(cls) -> URIRef:
        return cls.model

    def __init__(self, subject_uri: URIRef | str, store: GraphStore = None):
        self._subject_uri = URIRef(subject_uri)
        self.store = store if store is not None else GraphStore()
        self.metagraph: Graph = self.store.metagraph(self._subject_uri)

    def __str__(self):
        return str(self._subject_uri)

    def __repr__(self):
        return f'<{self.__class__.__name__} {self._subject_uri}>'

    @property
    def subject_uri(self) -> URIRef:
        return self._subject_uri

    @property
    def exists(self) -> bool:
        return (self._subject_uri, rdf.type, None) in self.metagraph

    @property
    def is_destroyed(self) -> bool:
        return self.store.is_tombstone(self._subject_uri)

    @property
    def etag(self) -> str:
        return graph_digest(self.metagraph)

    def matches(self, tag: str) -> bool:
        return tag == self.etag

    @property
    def last_modified(self) -> Optional[datetime]:
        value = self.metagraph.value(self._subject_uri, dcterms.modified)
        return value.toPython() if value is not None else None

    def set_last_modified(self):
        self.metagraph.set((self._subject_uri, dcterms.modified, Literal(now())))

    def create(self, input: IO | bytes | str | None, content_type: Optional[str]) -> 'Resource':
        """Create this resource from the request body `input`.

        :raises Conflict: if the resource already exists
        """
        with self.store.lock(self._subject_uri):
            if self.exists:
                raise Conflict(f'{self} already exists', uri=str(self))
            # parse before writing anything, so bad input leaves no trace
            state = self._parse_input(input, content_type)
            clear(self.metagraph)
            self.metagraph.add((self._subject_uri, rdf.type, self.to_uri()))
            self.set_last_modified()
            self._apply_input(state, replace=False)
            logger.info(f'Created {self.__class__.__name__} {self}')
        return self

    def update(self, input: IO | bytes | str | None, content_type: Optional[str]) -> 'Resource':
        """Replace the state of this resource. If it does not exist yet, this is
        the same as calling `create()`."""
        with self.store.lock(self._subject_uri):
            if not self.exists:
                return self.create(input, content_type)
            state = self._parse_input(input, content_type)
            self._apply_input(state, replace=True)
            self.set_last_modified()
            logger.info(f'Updated {self}')
        return self

    def destroy(self) -> 'Resource':
        """Remove this resource from its containers and discard its state,
        leaving a tombstone in its metagraph."""
        with self.store.lock(*self._destroy_lock_targets()):
            for container_uri in self.store.containers_of(self._subject_uri):
                find_resource(container_uri, self.store).remove(self._subject_uri)
            self._discard_state()
            clear(self.metagraph)
            self.metagraph.add((self._subject_uri, prov.invalidatedAtTime, Literal(now())))
            logger.info(f'Destroyed {self}')
        return self

    def containers(self) -> list['Resource']:
        return [find_resource(uri, self.store) for uri in self.store.containers_of(self._subject_uri)]

    def to_response(self, environ: Mapping[str, Any] = None) -> Any:
        return Graph()

    def _parse_input(self, input: IO | bytes | str | None, content_type: Optional[str]) -> Any:
        """Turn request input into state; must not modify the resource."""
        return None

    def _apply_input(self, state: Any, replace: bool):
        pass

    def _discard_state(self):
        pass

    def _destroy_lock_targets(self) -> set[URIRef]:
        targets = {self._subject_uri}
        for container in self.containers():
            targets |= container.membership_lock_targets()
        return targets

    def lock_targets(self, method: HTTPMethod) -> set[URIRef]:
        """Resources that must be locked while handling `method`."""
        if method == HTTPMethod.DELETE:
            return self._destroy_lock_targets()
        return {self._subject_uri}

    def handlers(self) -> dict[HTTPMethod, Handler]:
        return {
            HTTPMethod.GET: self._get,
            HTTPMethod.HEAD: self._head,
            HTTPMethod.OPTIONS: self._options,
            HTTPMethod.DELETE: self._delete,
        }

    def allowed_methods(self) -> list[HTTPMethod]:
        return list(self.handlers().keys())

    def dispatch(
            self,
            verb: HTTPMethod | str,
            status: HTTPStatus = HTTPStatus.OK,
            headers: dict[str, str] = None,
            environ: Mapping[str, Any] = None,
    ) -> Response:
        """Handle a request with the given HTTP method, returning a tuple of
        the status, response headers, and response body.

        :raises MethodNotAllowed: if there is no handler for the method, or
            the handler is not implemented
        """
        allowed = [m.value for m in self.allowed_methods()]
        try:
            method = HTTPMethod(str(verb).upper())
        except ValueError as e:
            raise MethodNotAllowed(f'{verb} is not allowed on {self}', allowed=allowed) from e
        handler = self.handlers().get(method)
        if handler is None:
            raise MethodNotAllowed(f'{method} is not allowed on {self}', allowed=allowed)

        headers = dict(headers or {})
        environ = environ if environ is not None else {}
        with self.store.lock(*self.lock_targets(method)):
            try:
                status, headers, body = handler(status, headers, environ)
            except NotImplementedError as e:
                raise MethodNotAllowed(f'{method} is not implemented for {self}', allowed=allowed) from e
            return status, self.update_headers(headers), body

    def update_headers(self, headers: dict[str, str]) -> dict[str, str]:
        """Add validator (`ETag`, `Last-Modified`), `Allow`, and `Link` headers
        describing this resource."""
        if self.exists:
            headers['ETag'] = quote_etag(self.etag, weak=True)
            last_modified = self.last_modified
            if last_modified is not None:
                headers['Last-Modified'] = http_date(last_modified)
        headers['Allow'] = ', '.join(m.value for m in self.allowed_methods())
        links = [headers['Link']] if headers.get('Link') else []
        links.extend(f'<{cls.model}>;rel="type"' for cls in reversed(type(self).__mro__) if 'model' in vars(cls))
        headers['Link'] = ', '.join(links)
        return headers

    def _require_existence(self):
        if not self.exists:
            if self.is_destroyed:
                raise Gone(f'{self} has been deleted', uri=str(self))
            raise NotFound(f'{self} not found', uri=str(self))

    def _check_precondition(self, environ: Mapping[str, Any]):
        """Enforce an `If-Match` request header, if present."""
        if_match = environ.get('HTTP_IF_MATCH')
        if not if_match:
            return
        etags = parse_etags(if_match)
        if etags.star_tag:
            return
        if not any(self.matches(tag) for tag in etags.as_set(include_weak=True)):
            logger.warning(f'If-Match {if_match} does not match the current ETag of {self}')
            raise PreconditionFailed(f'{self} has changed', uri=str(self))

    def _get(self, status, headers, environ) -> Response:
        self._require_existence()
        return status, headers, self

    def _head(self, status, headers, environ) -> Response:
        self._require_existence()
        return status, headers, None

    def _options(self, status, headers, environ) -> Response:
        self._require_existence()
        return status, headers, None

    def _delete(self, status, headers, environ) -> Response:
        self._require_existence()
        self.destroy()
        return HTTPStatus.NO_CONTENT, headers, None

    def _put(self, status, headers, environ) -> Response:
        body, content_type = request_body(environ)
        if self.exists:
            self._check_precondition(environ)
            model = requested_model(environ)
            if model is not None and model is not type(self):
                raise Conflict(
                    f'Cannot change the interaction model of {self} to {model.to_uri()}',
                    uri=str(self),
                )
            self.update(body, content_type)
            return HTTPStatus.OK, headers, self
        self.create(body, content_type)
        return HTTPStatus.CREATED, headers, self


def environ_for(
        body: bytes | str = b'',
        content_type: str = None,
        **headers: str,
) -> dict[str, Any]:
    """Build a minimal WSGI environ for `Resource.dispatch()` outside of a web
    server. Keyword arguments become `HTTP_*` keys, e.g., `if_match='"abc"'`
    becomes `HTTP_IF_MATCH`."""
    environ = {'wsgi.input': BytesIO(read_input(body))}
    if content_type is not None:
        environ['CONTENT_TYPE'] = content_type
    for name, value in headers.items():
        environ['HTTP_' + name.upper()] = value
    return environ
