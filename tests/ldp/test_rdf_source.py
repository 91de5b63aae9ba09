from http import HTTPMethod, HTTPStatus

import pytest
from rdflib import Graph, Literal, URIRef
from rdflib.compare import isomorphic

from rdfldp.exceptions import BadRequest, Conflict, Gone, NotFound, PreconditionFailed, UnsupportedMediaType
from rdfldp.ldp import BasicContainer, RDFSource, environ_for
from rdfldp.namespaces import dcterms, ldp, rdf

TURTLE = b'''
@prefix dcterms: <http://purl.org/dc/terms/> .
<> dcterms:title "Moomin" ;
   dcterms:subject <#troll> .
<#troll> dcterms:title "Troll" .
'''


@pytest.fixture
def rdf_source(uri, store):
    return RDFSource(uri, store)


@pytest.fixture
def created(rdf_source):
    return rdf_source.create(TURTLE, 'text/turtle')


def test_state_graph_is_named_with_uri(rdf_source, uri):
    assert rdf_source.graph.identifier == uri


def test_create_relative_iris(created, uri):
    assert (uri, dcterms.title, Literal('Moomin')) in created.graph
    assert (uri, dcterms.subject, URIRef(uri + '#troll')) in created.graph
    assert (URIRef(uri + '#troll'), dcterms.title, Literal('Troll')) in created.graph


def test_create_content_type_with_parameters(rdf_source, uri):
    rdf_source.create(TURTLE, 'text/turtle; charset=utf-8')
    assert (uri, dcterms.title, Literal('Moomin')) in rdf_source.graph


def test_create_from_stream(rdf_source, uri):
    rdf_source.create(environ_for(TURTLE)['wsgi.input'], 'text/turtle')
    assert len(rdf_source.graph) == 3


def test_create_empty(rdf_source):
    rdf_source.create(b'', 'text/turtle')
    assert rdf_source.exists
    assert len(rdf_source.graph) == 0


def test_server_managed_statements_not_in_graph(created, uri):
    assert (uri, rdf.type, None) not in created.graph
    assert (uri, dcterms.modified, None) not in created.graph
    assert (uri, rdf.type, ldp.RDFSource) not in created.to_response()


def test_create_unsupported_media_type(rdf_source):
    with pytest.raises(UnsupportedMediaType):
        rdf_source.create(b'moomin', 'text/plain')
    assert not rdf_source.exists


def test_create_bad_input(rdf_source):
    with pytest.raises(BadRequest):
        rdf_source.create(b'<> <moomin> "unterminated', 'text/turtle')
    assert not rdf_source.exists
    assert len(rdf_source.graph) == 0


def test_update_replaces_graph(created, uri):
    created.update(b'<> <http://purl.org/dc/terms/title> "Snork" .', 'text/turtle')
    assert (uri, dcterms.title, Literal('Snork')) in created.graph
    assert (uri, dcterms.title, Literal('Moomin')) not in created.graph
    assert len(created.graph) == 1


def test_update_bad_input_leaves_graph(created):
    before = created.to_response()
    with pytest.raises(BadRequest):
        created.update(b'@prefix', 'text/turtle')
    assert isomorphic(before, created.graph)


def test_update_creates(rdf_source, uri):
    rdf_source.update(TURTLE, 'text/turtle')
    assert rdf_source.exists
    assert (uri, dcterms.title, Literal('Moomin')) in rdf_source.graph


def test_round_trip(created):
    expected = Graph().parse(data=TURTLE, format='turtle', publicID=str(created.subject_uri))
    assert isomorphic(created.to_response(), expected)


def test_to_response_is_a_copy(created, uri):
    response = created.to_response()
    response.add((uri, dcterms.description, Literal('copy')))
    assert (uri, dcterms.description, Literal('copy')) not in created.graph


def test_etag_changes_on_update(created):
    etag = created.etag
    created.update(TURTLE + b'<> <http://purl.org/dc/terms/creator> "Tove" .', 'text/turtle')
    assert created.etag != etag


def test_etag_is_stable(created):
    assert created.etag == created.etag
    assert created.matches(created.etag)


def test_matches_wrong_count(created):
    # the same digest with a different statement count
    assert not created.matches(created.etag[:-1] + '9')


def test_matches_wrong_digest(created):
    assert not created.matches('AAAAAAAAAAAAAAAAAAAAAA==' + str(len(created.graph)))


def test_destroy_removes_graph(created, uri, store):
    created.destroy()
    assert len(created.graph) == 0
    assert not any(g.identifier == uri for g in store.dataset.graphs())


def test_allowed_methods(rdf_source):
    assert set(rdf_source.allowed_methods()) == {
        HTTPMethod.GET, HTTPMethod.HEAD, HTTPMethod.OPTIONS, HTTPMethod.PUT, HTTPMethod.PATCH, HTTPMethod.DELETE,
    }


def test_get(created):
    status, headers, body = created.dispatch('GET', HTTPStatus.OK, {}, environ_for())
    assert status == HTTPStatus.OK
    assert body is created
    assert isomorphic(body.to_response(), created.graph)


def test_put_creates(rdf_source):
    status, _, _ = rdf_source.dispatch('PUT', HTTPStatus.OK, {}, environ_for(TURTLE, 'text/turtle'))
    assert status == HTTPStatus.CREATED
    assert rdf_source.exists


def test_put_updates(created, uri):
    environ = environ_for(b'<> <http://purl.org/dc/terms/title> "Snork" .', 'text/turtle')
    status, _, _ = created.dispatch('PUT', HTTPStatus.OK, {}, environ)
    assert status == HTTPStatus.OK
    assert (uri, dcterms.title, Literal('Snork')) in created.graph


def test_put_if_match(created, uri):
    environ = environ_for(
        b'<> <http://purl.org/dc/terms/title> "Snork" .', 'text/turtle', if_match=f'W/"{created.etag}"'
    )
    status, _, _ = created.dispatch('PUT', HTTPStatus.OK, {}, environ)
    assert status == HTTPStatus.OK


def test_put_if_match_star(created):
    environ = environ_for(TURTLE, 'text/turtle', if_match='*')
    status, _, _ = created.dispatch('PUT', HTTPStatus.OK, {}, environ)
    assert status == HTTPStatus.OK


def test_put_precondition_failed(created, uri):
    environ = environ_for(b'<> <http://purl.org/dc/terms/title> "Snork" .', 'text/turtle', if_match='W/"stale"')
    with pytest.raises(PreconditionFailed):
        created.dispatch('PUT', HTTPStatus.OK, {}, environ)
    assert (uri, dcterms.title, Literal('Moomin')) in created.graph


def test_put_cannot_change_interaction_model(created):
    environ = environ_for(TURTLE, 'text/turtle', link=f'<{ldp.BasicContainer}>; rel="type"')
    with pytest.raises(Conflict):
        created.dispatch('PUT', HTTPStatus.OK, {}, environ)


def test_put_same_interaction_model(created):
    environ = environ_for(TURTLE, 'text/turtle', link=f'<{ldp.RDFSource}>; rel="type"')
    status, _, _ = created.dispatch('PUT', HTTPStatus.OK, {}, environ)
    assert status == HTTPStatus.OK


def test_put_unsupported_media_type(created):
    with pytest.raises(UnsupportedMediaType):
        created.dispatch('PUT', HTTPStatus.OK, {}, environ_for(b'moomin', 'image/png'))


def test_patch(created, uri):
    sparql = f'''
        PREFIX dcterms: <http://purl.org/dc/terms/>
        DELETE {{ <> dcterms:title ?title }}
        INSERT {{ <> dcterms:title "Moominmamma" }}
        WHERE {{ <> dcterms:title ?title }}
    '''
    status, _, body = created.dispatch('PATCH', HTTPStatus.OK, {}, environ_for(sparql, 'application/sparql-update'))
    assert status == HTTPStatus.NO_CONTENT
    assert body is None
    assert (uri, dcterms.title, Literal('Moominmamma')) in created.graph
    assert (uri, dcterms.title, Literal('Moomin')) not in created.graph


def test_patch_sets_last_modified(created, clock):
    sparql = 'INSERT DATA { <> <http://purl.org/dc/terms/creator> "Tove" }'
    created.dispatch('PATCH', HTTPStatus.OK, {}, environ_for(sparql, 'application/sparql-update'))
    assert created.last_modified == clock[-1]


def test_patch_wrong_content_type(created):
    with pytest.raises(UnsupportedMediaType):
        created.dispatch('PATCH', HTTPStatus.OK, {}, environ_for(TURTLE, 'text/turtle'))


def test_patch_bad_query(created):
    before = created.to_response()
    with pytest.raises(BadRequest) as e:
        created.dispatch('PATCH', HTTPStatus.OK, {}, environ_for('INSERT NONSENSE', 'application/sparql-update'))
    assert 'SPARQL Update Query parsing error' in str(e.value)
    assert isomorphic(before, created.graph)


def test_patch_precondition_failed(created):
    sparql = 'INSERT DATA { <> <http://purl.org/dc/terms/creator> "Tove" }'
    environ = environ_for(sparql, 'application/sparql-update', if_match='W/"stale"')
    with pytest.raises(PreconditionFailed):
        created.dispatch('PATCH', HTTPStatus.OK, {}, environ)


def test_patch_not_found(rdf_source):
    with pytest.raises(NotFound):
        rdf_source.dispatch('PATCH', HTTPStatus.OK, {}, environ_for('', 'application/sparql-update'))


def test_patch_gone(created):
    created.destroy()
    with pytest.raises(Gone):
        created.dispatch('PATCH', HTTPStatus.OK, {}, environ_for('', 'application/sparql-update'))


def test_delete_removes_from_container(store, uri):
    container = BasicContainer(uri, store).create(b'', 'text/turtle')
    member = RDFSource(URIRef(uri + '/snufkin'), store).create(TURTLE, 'text/turtle')
    container.add(member)
    member.dispatch('DELETE', HTTPStatus.OK, {}, environ_for())
    assert container.containment_triples == set()
    assert member.is_destroyed


def test_destroy_with_contains_statement_in_client_graph(store, uri):
    snufkin = RDFSource(URIRef('http://ex.org/snufkin'), store).create(b'', 'text/turtle')
    RDFSource(uri, store).create(
        b'<http://ex.org/nobody> <http://www.w3.org/ns/ldp#contains> <http://ex.org/snufkin> .', 'text/turtle'
    )
    assert snufkin.containers() == []
    snufkin.destroy()
    assert snufkin.is_destroyed
