import logging
from http import HTTPMethod, HTTPStatus
from typing import Any, Mapping, Optional
from uuid import uuid4

from rdflib import Graph, URIRef
from urlobject import URLObject
from werkzeug.http import parse_options_header

from rdfldp.ldp.rdf_source import RDFSource
from rdfldp.ldp.resource import Handler, Resource, Response, interaction_model, request_body
from rdfldp.namespaces import ldp

logger = logging.getLogger(__name__)


def mint_path_segment() -> str:
    return str(uuid4())


def prefers_containment(environ: Optional[Mapping[str, Any]]) -> bool:
    """Whether the request's `Prefer` header asks for containment triples,
    e.g. `Prefer: return=representation; include="http://www.w3.org/ns/ldp#PreferContainment"`."""
    if not environ or not environ.get('HTTP_PREFER'):
        return False
    value, params = parse_options_header(environ['HTTP_PREFER'])
    return value == 'return=representation' and str(ldp.PreferContainment) in params.get('include', '').split()


class Container(RDFSource, register=False):
    """An [LDP Container](https://www.w3.org/TR/ldp/#ldpc).

    Containment statements (`<container> ldp:contains <member>`) are kept in
    the metagraph. They are only included in the representation when the
    client asks for them with a `Prefer` header.
    """
    model = ldp.Container
    is_container = True

    @property
    def containment_triples(self) -> set[tuple]:
        return set(self.metagraph.triples((self.subject_uri, ldp.contains, None)))

    def membership_lock_targets(self) -> set[URIRef]:
        """Resources to lock, along with this one, when adding or removing members."""
        return {self.subject_uri}

    def check_membership(self):
        """Raise a `RequestError` if members cannot currently be added."""
        pass

    def add(self, member: Resource) -> 'Container':
        """Record that this container contains `member`."""
        with self.store.lock(*self.membership_lock_targets()):
            self.metagraph.add((self.subject_uri, ldp.contains, member.subject_uri))
            self.set_last_modified()
            logger.info(f'Added {member} to {self}')
        return self

    def remove(self, member_uri: URIRef | str) -> 'Container':
        """Remove the containment statement for `member_uri`, if there is one."""
        with self.store.lock(*self.membership_lock_targets()):
            triple = (self.subject_uri, ldp.contains, URIRef(member_uri))
            if triple in self.metagraph:
                self.metagraph.remove(triple)
                self.set_last_modified()
                logger.info(f'Removed {member_uri} from {self}')
        return self

    def to_response(self, environ: Mapping[str, Any] = None) -> Graph:
        response = super().to_response(environ)
        if prefers_containment(environ):
            for triple in self.containment_triples:
                response.add(triple)
        return response

    def mint_member_uri(self, slug: Optional[str] = None) -> URIRef:
        """URI for a new member: this container's URI plus the `slug` (when
        given and not already taken), or plus a random UUID."""
        base = URLObject(str(self.subject_uri)).without_fragment()
        if slug and slug.strip():
            candidate = URIRef(base.add_path_segment(slug.strip()))
            if self.store.interaction_model(candidate) is None and not self.store.is_tombstone(candidate):
                return candidate
            logger.info(f'Slug "{slug}" is already in use in {self}; minting a new identifier')
        return URIRef(base.add_path_segment(mint_path_segment()))

    def lock_targets(self, method: HTTPMethod) -> set[URIRef]:
        if method == HTTPMethod.POST:
            return self.membership_lock_targets()
        return super().lock_targets(method)

    def handlers(self) -> dict[HTTPMethod, Handler]:
        return {
            **super().handlers(),
            HTTPMethod.POST: self._post,
        }

    def _get(self, status, headers, environ) -> Response:
        status, headers, body = super()._get(status, headers, environ)
        if prefers_containment(environ):
            headers['Preference-Applied'] = 'return=representation'
        return status, headers, body

    def _post(self, status, headers, environ) -> Response:
        self._require_existence()
        self.check_membership()
        model = interaction_model(environ)
        body, content_type = request_body(environ)
        member = model(self.mint_member_uri(environ.get('HTTP_SLUG')), self.store)
        member.create(body, content_type)
        self.add(member)
        headers['Location'] = str(member.subject_uri)
        return HTTPStatus.CREATED, headers, member


class BasicContainer(Container):
    """An [LDP Basic Container](https://www.w3.org/TR/ldp/#ldpbc)."""
    model = ldp.BasicContainer
