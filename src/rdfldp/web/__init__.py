import logging
import os

from flask import Flask
from rdflib import URIRef
from werkzeug.exceptions import HTTPException

from rdfldp import __version__
from rdfldp.exceptions import RequestError
from rdfldp.store import GraphStore
from rdfldp.utils import load_config, strtobool
from rdfldp.web.blueprints import resources_blueprint
from rdfldp.web.blueprints.resources import ensure_root_container
from rdfldp.web.flask_problem import problem_detail_response, request_error_response

logger = logging.getLogger(__name__)


def create_app(config_file: str | os.PathLike) -> Flask:
    app = Flask(__name__)
    config = load_config(config_file)
    server_config = config.get('SERVER', {}) or {}
    store_config = config.get('STORE', {}) or {}

    app.config['STORE'] = GraphStore.from_config(store_config)
    app.config['BASE_URL'] = server_config.get('BASE_URL')
    app.config['ROOT_CONTAINER'] = bool(strtobool(store_config.get('ROOT_CONTAINER', True)))
    app.config['DEFAULT_CONTENT_TYPE'] = config.get('DEFAULT_CONTENT_TYPE', 'text/turtle')
    logger.info(f'rdf-ldp {__version__} configured from {config_file}')

    if app.config['ROOT_CONTAINER'] and app.config['BASE_URL']:
        ensure_root_container(URIRef(app.config['BASE_URL'].rstrip('/') + '/'), app.config['STORE'])

    app.register_blueprint(resources_blueprint)
    app.register_error_handler(RequestError, request_error_response)
    app.register_error_handler(HTTPException, problem_detail_response)

    return app
