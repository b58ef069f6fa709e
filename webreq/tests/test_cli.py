from __future__ import annotations

import io
import json

import pytest

from webreq.cli.main import build_parser, main
from webreq.cli.request_cmds import _parse_file_arg, _parse_pairs, cmd_request
from webreq.client.http import WebReqClient
from webreq.core.errors import PreconditionError


def test_parse_pairs_keeps_order_and_duplicates():
    assert _parse_pairs(["a=1", "b=x=y", "a=2", "empty="]) == [
        ("a", "1"),
        ("b", "x=y"),
        ("a", "2"),
        ("empty", ""),
    ]
    with pytest.raises(PreconditionError):
        _parse_pairs(["novalue"])


def test_parse_file_arg():
    assert _parse_file_arg("doc=/tmp/a.txt") == ("doc", "/tmp/a.txt", None)
    assert _parse_file_arg("doc=/tmp/a.txt:text/plain") == ("doc", "/tmp/a.txt", "text/plain")
    assert _parse_file_arg("doc=C:/data/a.bin") == ("doc", "C:/data/a.bin", None)
    with pytest.raises(PreconditionError):
        _parse_file_arg("doc")


def test_parser_has_a_command_per_verb():
    parser = build_parser()
    for cmd in ["get", "head", "post", "put", "patch", "delete"]:
        args = parser.parse_args([cmd, "http://h/"])
        assert args.cmd == cmd
    args = parser.parse_args(["upload", "http://h/", "-f", "x=/tmp/a"])
    assert args.file == ["x=/tmp/a"]


def test_cli_get_prints_body(echo_server, capsys):
    rc = main(["get", f"{echo_server}/echo?a=1", "-p", "b=2"])
    out = capsys.readouterr().out
    assert rc == 0
    assert json.loads(out)["query"] == [["a", "1"], ["b", "2"]]


def test_cli_post_with_headers(echo_server, capsys):
    rc = main(["post", f"{echo_server}/echo", "-p", "k=v", "--headers"])
    out = capsys.readouterr().out
    assert rc == 0
    head, _, body = out.partition("\n\n")
    assert "content-type: application/json" in head.lower()
    assert json.loads(body)["body"] == "k=v"


def test_cli_upload(echo_server, tmp_path, capsys):
    p = tmp_path / "note.txt"
    p.write_bytes(b"hello file")

    rc = main(["upload", f"{echo_server}/echo", "-p", "a=1", "-f", f"doc={p}:text/plain"])
    out = capsys.readouterr().out
    assert rc == 0
    data = json.loads(out)
    assert 'filename="note.txt"' in data["body"]
    assert "hello file" in data["body"]


def test_cli_status_error_exit_code(echo_server, capsys):
    rc = main(["get", f"{echo_server}/status/404"])
    err = capsys.readouterr().err
    assert rc == 2
    assert "404" in err


def test_cli_bad_url_exit_code(capsys):
    rc = main(["get", "not-a-url"])
    assert rc == 2
    assert "error:" in capsys.readouterr().err


def test_cli_missing_upload_file(tmp_path, capsys):
    rc = main(["upload", "http://127.0.0.1:1/", "-f", f"doc={tmp_path / 'missing.bin'}"])
    assert rc == 2
    assert "cannot open" in capsys.readouterr().err


def test_cli_blank_upload_field_name(tmp_path, capsys):
    p = tmp_path / "a.bin"
    p.write_bytes(b"x")
    rc = main(["upload", "http://127.0.0.1:1/", "-f", f" ={p}"])
    assert rc == 2
    assert "field name" in capsys.readouterr().err


class _ResetBody(io.BytesIO):
    def read(self, *args):
        raise OSError("connection reset while reading body")


def test_cli_error_while_reading_response(fake_transport_cls, client_config, capsys):
    transport = fake_transport_cls(body_cls=_ResetBody)
    args = build_parser().parse_args(["get", "http://h/"])

    with WebReqClient(transport=transport, config=client_config) as client:
        rc = cmd_request(args, client)

    assert rc == 2
    assert "connection reset" in capsys.readouterr().err
