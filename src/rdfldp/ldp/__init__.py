"""Resource classes for the [Linked Data Platform](https://www.w3.org/TR/ldp/)
interaction models, and functions to look them up."""

from rdfldp.ldp.resource import INTERACTION_MODELS, Resource, environ_for, find_resource, interaction_model
from rdfldp.ldp.rdf_source import RDFSource
from rdfldp.ldp.non_rdf_source import NonRDFSource
from rdfldp.ldp.container import BasicContainer, Container
from rdfldp.ldp.direct_container import DirectContainer, MembershipOrientation

__all__ = [
    'INTERACTION_MODELS',
    'BasicContainer',
    'Container',
    'DirectContainer',
    'MembershipOrientation',
    'NonRDFSource',
    'RDFSource',
    'Resource',
    'environ_for',
    'find_resource',
    'interaction_model',
]
