import logging

import click
from dotenv import load_dotenv
from waitress import serve

from rdfldp import __version__
from rdfldp.utils import configure_logging, load_config
from rdfldp.web import create_app

logger = logging.getLogger(__name__)


@click.command()
@click.option(
    '--listen',
    default='0.0.0.0:5000',
    help='Address and port to listen on. Default is "0.0.0.0:5000".',
    metavar='[ADDRESS]:PORT',
)
@click.option(
    '-c', '--config-file',
    type=click.Path(exists=True),
    help='Configuration file',
    required=True,
)
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='Increase the verbosity of the log output',
)
def run(listen: str, config_file: str, verbose: bool):
    load_dotenv()
    config = load_config(config_file)
    configure_logging(config, verbose=verbose)
    server_identity = f'rdf-ldp/{__version__}'
    # the default in-memory rdflib store is not safe for concurrent writers
    threads = int((config.get('SERVER', {}) or {}).get('THREADS', 1))
    logger.info(f'Starting {server_identity} with {threads} thread(s)')
    try:
        serve(
            app=create_app(config_file),
            listen=listen,
            ident=server_identity,
            threads=threads,
        )
    except (OSError, RuntimeError) as e:
        logger.error(f'Exiting: {e}')
        raise SystemExit(1) from e


if __name__ == "__main__":
    run()
