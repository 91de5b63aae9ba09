import logging
import logging.config
import os
from copy import deepcopy
from typing import Mapping, Any

import yaml

DEFAULT_LOGGING_OPTIONS = {
    'version': 1,
    'formatters': {
        'full': {
            'format': '%(levelname)s|%(asctime)s|%(threadName)s|%(name)s|%(message)s'
        },
        'messageonly': {
            'format': '%(message)s'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'level': 'INFO',
            'formatter': 'full',
            'stream': 'ext://sys.stderr'
        },
    },
    'loggers': {
        '__main__': {
            'level': 'DEBUG',
            'handlers': ['console'],
            'propagate': False
        },
        'rdfldp': {
            'level': 'DEBUG',
            'handlers': ['console'],
            'propagate': False
        },
        'waitress': {
            'level': 'INFO',
            'handlers': ['console'],
            'propagate': False
        },
    },
    'root': {
        'level': 'INFO'
    }
}
logger = logging.getLogger(__name__)


def envsubst(value: str | list | dict, env: Mapping[str, str] = None) -> str | list | dict:
    """
    Recursively replace `${VAR_NAME}` placeholders in value with the values of the
    corresponding keys of env. If env is not given, it defaults to the environment
    variables in os.environ.

    Any placeholders that do not have a corresponding key in the env dictionary
    are left as is.

    :param value: String, list, or dictionary to search for `${VAR_NAME}` placeholders.
    :param env: Dictionary of values to use as replacements. If not given, defaults
        to `os.environ`.
    :return: If `value` is a string, returns the result of replacing `${VAR_NAME}` with the
        corresponding `value` from env. If `value` is a list, returns a new list where each
        item in `value` replaced with the result of calling `envsubst()` on that item. If
        `value` is a dictionary, returns a new dictionary where each item in `value` is replaced
        with the result of calling `envsubst()` on that item.
    """
    if env is None:
        env = os.environ
    if isinstance(value, str):
        if '${' in value:
            try:
                return value.replace('${', '{').format(**env)
            except KeyError as e:
                missing_key = str(e.args[0])
                logger.warning(f'Environment variable ${{{missing_key}}} not found')
                # for a missing key, just return the string without substitution
                return envsubst(value, {missing_key: f'${{{missing_key}}}', **env})
        else:
            return value
    elif isinstance(value, list):
        return [envsubst(v, env) for v in value]
    elif isinstance(value, dict):
        return {k: envsubst(v, env) for k, v in value.items()}
    else:
        return value


def load_config(filename: str | os.PathLike) -> dict[str, Any]:
    """Read a YAML configuration file and substitute `${VAR_NAME}` placeholders
    from the environment. An empty file yields an empty dictionary."""
    with open(filename, 'r') as stream:
        return envsubst(yaml.safe_load(stream) or {})


def configure_logging(config: Mapping[str, Any], verbose: bool = False):
    """Configure logging from the file named by `LOGGING_CONFIG`, falling back
    to `DEFAULT_LOGGING_OPTIONS`."""
    if config.get('LOGGING_CONFIG'):
        with open(config['LOGGING_CONFIG'], 'r') as logging_config_file:
            logging_options = yaml.safe_load(logging_config_file)
    else:
        logging_options = deepcopy(DEFAULT_LOGGING_OPTIONS)
        if verbose:
            logging_options['handlers']['console']['level'] = 'DEBUG'
    logging.config.dictConfig(logging_options)


def strtobool(val: str | bool) -> int:
    """Convert a string representation of truth to true (1) or false (0).

    True values are 'y', 'yes', 't', 'true', 'on', and '1'; false values
    are 'n', 'no', 'f', 'false', 'off', and '0'.  Raises ValueError if
    'val' is anything else. Booleans (as already parsed from YAML) are
    passed through as integers.

    Note that even though this function is named `strtobool`, it actually
    returns an integer, like the `distutils` function it replaces.
    """
    if isinstance(val, bool):
        return int(val)
    val = val.lower()
    if val in ('y', 'yes', 't', 'true', 'on', '1'):
        return 1
    elif val in ('n', 'no', 'f', 'false', 'off', '0'):
        return 0
    else:
        raise ValueError("invalid truth value %r" % (val,))
