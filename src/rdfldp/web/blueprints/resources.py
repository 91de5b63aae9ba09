import logging
from http import HTTPStatus
from io import BytesIO
from typing import Any, Mapping

from flask import Blueprint, Response, current_app, request
from rdflib import Graph, URIRef

from rdfldp.exceptions import NotAcceptable, NotFound
from rdfldp.formats import WRITABLE_TYPES, serialize
from rdfldp.ldp import BasicContainer, Resource, find_resource, interaction_model
from rdfldp.store import GraphStore

logger = logging.getLogger(__name__)
blueprint = Blueprint('resources', __name__)

METHODS = ['GET', 'HEAD', 'OPTIONS', 'PUT', 'POST', 'PATCH', 'DELETE']


def request_uri(path: str) -> URIRef:
    """The subject URI for the requested path, based on the configured
    `BASE_URL` or, if that is not set, on the request's own host URL."""
    base_url = current_app.config.get('BASE_URL')
    if base_url:
        return URIRef(base_url.rstrip('/') + '/' + path)
    return URIRef(request.base_url)


def ensure_root_container(uri: URIRef, store: GraphStore):
    with store.lock(uri):
        if store.interaction_model(uri) is None and not store.is_tombstone(uri):
            logger.info(f'Creating root container at {uri}')
            BasicContainer(uri, store).create(None, 'text/turtle')


def response_type() -> str:
    default = current_app.config['DEFAULT_CONTENT_TYPE']
    if not request.accept_mimetypes:
        return default
    candidates = [default] + [t for t in WRITABLE_TYPES if t != default]
    content_type = request.accept_mimetypes.best_match(candidates)
    if content_type is None:
        raise NotAcceptable(
            f'Cannot serialize as any of {request.accept_mimetypes}',
            available=', '.join(candidates),
        )
    return content_type


def make_ldp_response(status: HTTPStatus, headers: dict[str, str], body: Any, environ: Mapping[str, Any]) -> Response:
    if isinstance(body, Resource) and body.is_non_rdf_source:
        return Response(body.to_response(environ), status=status, headers=headers, content_type=body.content_type)
    if isinstance(body, Resource):
        body = body.to_response(environ)
    if isinstance(body, Graph):
        content_type = response_type()
        headers['Vary'] = 'Accept'
        return Response(serialize(body, content_type), status=status, headers=headers, content_type=content_type)
    return Response(status=status, headers=headers)


@blueprint.route('/', defaults={'path': ''}, methods=METHODS, provide_automatic_options=False)
@blueprint.route('/<path:path>', methods=METHODS, provide_automatic_options=False)
def handle(path: str):
    store: GraphStore = current_app.config['STORE']
    uri = request_uri(path)
    if path == '' and current_app.config['ROOT_CONTAINER']:
        ensure_root_container(uri, store)

    logger.info(f'{request.method} {uri}')
    # the resource classes read the body from the environ, so hand them a
    # fresh stream over the request data
    environ = {**request.environ, 'wsgi.input': BytesIO(request.get_data())}
    try:
        resource = find_resource(uri, store)
    except NotFound:
        if request.method != 'PUT':
            raise
        resource = interaction_model(environ)(uri, store)

    status, headers, body = resource.dispatch(request.method, HTTPStatus.OK, {}, environ)
    logger.debug(f'{request.method} {uri}: {status}')
    return make_ldp_response(status, headers, body, environ)
