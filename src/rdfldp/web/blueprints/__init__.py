from rdfldp.web.blueprints.resources import blueprint as resources_blueprint

__all__ = ['resources_blueprint']
