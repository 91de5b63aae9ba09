from unittest.mock import patch

from click.testing import CliRunner

from rdfldp.web.server import run


def test_run(config_file_path):
    with patch('rdfldp.web.server.serve') as mock_serve:
        result = CliRunner().invoke(run, ['--listen', '127.0.0.1:8000', '-c', str(config_file_path)])
    assert result.exit_code == 0
    kwargs = mock_serve.call_args.kwargs
    assert kwargs['listen'] == '127.0.0.1:8000'
    assert kwargs['threads'] == 1
    assert kwargs['ident'].startswith('rdf-ldp/')


def test_run_fails(config_file_path):
    with patch('rdfldp.web.server.serve', side_effect=OSError('address in use')):
        result = CliRunner().invoke(run, ['-c', str(config_file_path)])
    assert result.exit_code == 1
