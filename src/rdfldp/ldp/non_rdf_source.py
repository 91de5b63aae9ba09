from base64 import b64encode
from hashlib import md5
from http import HTTPMethod
from typing import Any, Mapping, Optional

from rdflib import Literal

from rdfldp.formats import media_type, read_input
from rdfldp.ldp.resource import Handler, Resource
from rdfldp.namespaces import dcterms, ldp

DEFAULT_CONTENT_TYPE = 'application/octet-stream'


class NonRDFSource(Resource):
    """An [LDP Non-RDF Source](https://www.w3.org/TR/ldp/#ldpnr), such as an
    image or a text document. The body is kept by the store; its media type is
    recorded in the metagraph."""
    model = ldp.NonRDFSource
    is_non_rdf_source = True

    @property
    def content(self) -> bytes:
        return self.store.get_body(self.subject_uri)

    @property
    def content_type(self) -> str:
        value = self.metagraph.value(self.subject_uri, dcterms['format'])
        return str(value) if value is not None else DEFAULT_CONTENT_TYPE

    @property
    def etag(self) -> str:
        content = self.content
        return f'{b64encode(md5(content).digest()).decode()}{len(content)}'

    def to_response(self, environ: Mapping[str, Any] = None) -> bytes:
        return self.content

    def _parse_input(self, input, content_type) -> tuple[bytes, Optional[str]]:
        return read_input(input), media_type(content_type) or DEFAULT_CONTENT_TYPE

    def _apply_input(self, state: tuple[bytes, str], replace: bool):
        content, content_type = state
        self.store.put_body(self.subject_uri, content)
        self.metagraph.set((self.subject_uri, dcterms['format'], Literal(content_type)))

    def _discard_state(self):
        self.store.delete_body(self.subject_uri)

    def handlers(self) -> dict[HTTPMethod, Handler]:
        return {
            **super().handlers(),
            HTTPMethod.PUT: self._put,
        }
