import logging
from enum import Enum

from rdflib import Graph, URIRef

from rdfldp.exceptions import AmbiguousConfiguration, Gone, NotFound
from rdfldp.graph import document_uri
from rdfldp.ldp.container import Container
from rdfldp.ldp.resource import Resource, find_resource
from rdfldp.namespaces import ldp

logger = logging.getLogger(__name__)


class MembershipOrientation(Enum):
    """Which end of a membership triple the membership resource is on."""
    HAS_MEMBER = ldp.hasMemberRelation
    """`<membership resource> <predicate> <member>`"""
    IS_MEMBER_OF = ldp.isMemberOfRelation
    """`<member> <predicate> <membership resource>`"""


class DirectContainer(Container):
    """An [LDP Direct Container](https://www.w3.org/TR/ldp/#ldpdc).

    Besides containment, a direct container maintains a *membership triple*
    for each of its members, in the graph of its membership resource. The
    membership resource and the predicate of the triple are configured in the
    container's own graph:

    * `ldp:membershipResource` names the membership resource, which may be
      the container itself, a fragment of the container, or another resource
    * exactly one of `ldp:hasMemberRelation` or `ldp:isMemberOfRelation` gives
      the predicate, and which way round the triple goes

    When the container is created without this configuration, the container
    itself becomes the membership resource and `ldp:member` the
    `ldp:hasMemberRelation`. These defaults are written to the graph, so the
    configuration is always explicit afterwards.
    """
    model = ldp.DirectContainer
    DEFAULT_MEMBER_RELATION = ldp.member

    @property
    def membership_constant_uri(self) -> URIRef:
        """The membership resource.

        :raises AmbiguousConfiguration: unless there is exactly one `ldp:membershipResource`
        """
        values = set(self.graph.objects(self.subject_uri, ldp.membershipResource))
        if len(values) != 1:
            raise AmbiguousConfiguration(
                f'{self} has {len(values)} membership resources; exactly one is required',
                uri=str(self),
            )
        return values.pop()

    @property
    def membership_predicate(self) -> URIRef:
        return self._membership_relation()[0]

    @property
    def membership_orientation(self) -> MembershipOrientation:
        return self._membership_relation()[1]

    def _membership_relation(self) -> tuple[URIRef, MembershipOrientation]:
        relations = {
            orientation: set(self.graph.objects(self.subject_uri, orientation.value))
            for orientation in MembershipOrientation
        }
        configured = [(orientation, values) for orientation, values in relations.items() if values]
        if len(configured) != 1 or len(configured[0][1]) != 1:
            raise AmbiguousConfiguration(
                f'{self} must have exactly one of ldp:hasMemberRelation or ldp:isMemberOfRelation',
                uri=str(self),
            )
        orientation, values = configured[0]
        return values.pop(), orientation

    def make_membership_triple(self, member_uri: URIRef | str) -> tuple[URIRef, URIRef, URIRef]:
        """The membership triple for `member_uri` under the current configuration."""
        predicate, orientation = self._membership_relation()
        constant = self.membership_constant_uri
        if orientation is MembershipOrientation.HAS_MEMBER:
            return constant, predicate, URIRef(member_uri)
        else:
            return URIRef(member_uri), predicate, constant

    def membership_resource(self) -> Resource:
        """The resource whose graph holds the membership triples.

        This is the container itself when the membership resource is the
        container or one of its fragments. It is also the container when the
        membership resource does not exist or is not an RDF source, since there
        is no other graph to write to.
        """
        uri = document_uri(self.membership_constant_uri)
        if uri == self.subject_uri:
            return self
        try:
            resource = find_resource(uri, self.store)
        except (NotFound, Gone):
            logger.debug(f'Membership resource {uri} of {self} does not exist; using {self}')
            return self
        if not resource.is_rdf_source:
            logger.debug(f'Membership resource {uri} of {self} is not an RDF source; using {self}')
            return self
        return resource

    def membership_lock_targets(self) -> set[URIRef]:
        try:
            return {self.subject_uri, document_uri(self.membership_constant_uri)}
        except AmbiguousConfiguration:
            return {self.subject_uri}

    def check_membership(self):
        # resolving any membership triple raises if the configuration is ambiguous
        self.make_membership_triple(self.subject_uri)

    def add(self, member: Resource) -> 'DirectContainer':
        """Add `member` to this container, writing its membership triple to the
        membership resource and its containment triple to this container.

        The configuration is resolved before anything is written, so a
        misconfigured container is left unchanged.

        :raises AmbiguousConfiguration: if the membership configuration is
            missing or ambiguous
        """
        with self.store.lock(*self.membership_lock_targets()):
            triple = self.make_membership_triple(member.subject_uri)
            target = self.membership_resource()
            target.graph.add(triple)
            try:
                super().add(member)
            except Exception:
                target.graph.remove(triple)
                raise
            if target is not self:
                target.set_last_modified()
            logger.debug(f'Added membership triple {triple} to {target}')
        return self

    def remove(self, member_uri: URIRef | str) -> 'DirectContainer':
        """Remove the membership and containment triples for `member_uri`.
        Removing a member that is not there does nothing."""
        with self.store.lock(*self.membership_lock_targets()):
            triple = self.make_membership_triple(member_uri)
            target = self.membership_resource()
            if triple in target.graph:
                target.graph.remove(triple)
                if target is not self:
                    target.set_last_modified()
                logger.debug(f'Removed membership triple {triple} from {target}')
            super().remove(member_uri)
        return self

    def _destroy_lock_targets(self) -> set[URIRef]:
        return super()._destroy_lock_targets() | self.membership_lock_targets()

    def _discard_state(self):
        # membership triples may be in another resource's graph, which
        # outlives this container
        try:
            for _, _, member_uri in self.containment_triples:
                self.remove(member_uri)
        except AmbiguousConfiguration as e:
            logger.warning(f'Leaving membership triples of {self} in place: {e}')
        super()._discard_state()

    def _validate_state(self, statements: Graph):
        membership_resources = set(statements.objects(self.subject_uri, ldp.membershipResource))
        if len(membership_resources) > 1:
            raise AmbiguousConfiguration(f'{self} cannot have more than one membership resource', uri=str(self))
        relations = [
            set(statements.objects(self.subject_uri, orientation.value)) for orientation in MembershipOrientation
        ]
        if sum(len(values) for values in relations) > 1:
            raise AmbiguousConfiguration(
                f'{self} cannot have more than one ldp:hasMemberRelation or ldp:isMemberOfRelation',
                uri=str(self),
            )

    def _apply_input(self, statements: Graph, replace: bool):
        super()._apply_input(statements, replace)
        if (self.subject_uri, ldp.membershipResource, None) not in self.graph:
            self.graph.add((self.subject_uri, ldp.membershipResource, self.subject_uri))
        if not any((self.subject_uri, o.value, None) in self.graph for o in MembershipOrientation):
            self.graph.add((self.subject_uri, ldp.hasMemberRelation, self.DEFAULT_MEMBER_RELATION))
