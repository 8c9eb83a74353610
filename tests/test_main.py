"""Tests for the lu-replay command line."""

from lu_replay.main import build_parser, main
from lu_replay.protocol.packet_types import Service
from builders import (
    login_request_body, player_construction, player_update, service_message, write_zip,
)


def test_parser_flags():
    args = build_parser().parse_args(["caps", "cd.sqlite", "--print-packets", "-v"])
    assert str(args.capture_path) == "caps"
    assert args.print_packets
    assert args.verbose


def test_clean_run(tmp_path, cdclient_db, capsys):
    write_zip(tmp_path / "caps" / "session.zip", [
        ("0001_[53-01-00-00].bin", service_message(Service.AUTH, 0, login_request_body())),
        ("0002_[24]_(1).bin", player_construction(network_id=1)),
        ("0003_[27].bin", player_update(network_id=1)),
    ])
    assert main([str(tmp_path / "caps"), str(cdclient_db)]) == 0
    out = capsys.readouterr().out
    assert "Number of parsed packets: 3" in out
    assert "Time taken:" in out


def test_print_packets(tmp_path, cdclient_db, capsys):
    path = write_zip(tmp_path / "session.zip", [
        ("0001_[53-01-00-00].bin", service_message(Service.AUTH, 0, login_request_body("kaja"))),
    ])
    assert main([str(path), str(cdclient_db), "--print-packets"]) == 0
    out = capsys.readouterr().out
    assert "0001_[53-01-00-00].bin" in out
    assert "LOGIN_REQUEST" in out


def test_unchecked_updates_reported(tmp_path, cdclient_db, capsys):
    path = write_zip(tmp_path / "session.zip", [
        ("0001_[27].bin", player_update(network_id=3)),
    ])
    assert main([str(path), str(cdclient_db)]) == 0
    assert "were not checked" in capsys.readouterr().out


def test_decode_failure_exits_nonzero(tmp_path, cdclient_db):
    path = write_zip(tmp_path / "session.zip", [
        ("0001_[24]_(1).bin", player_construction(network_id=1, extra=b"\x00")),
    ])
    assert main([str(path), str(cdclient_db)]) == 1


def test_missing_catalog(tmp_path):
    path = write_zip(tmp_path / "session.zip", [])
    assert main([str(path), str(tmp_path / "missing.sqlite")]) == 1


def test_not_a_capture(tmp_path, cdclient_db):
    (tmp_path / "notes.txt").write_text("")
    assert main([str(tmp_path / "notes.txt"), str(cdclient_db)]) == 1


def test_bad_capture_payload_exits_nonzero(tmp_path, cdclient_db):
    path = tmp_path / "session.json"
    path.write_text('{"packets": [{"tag": "0001_[24]_(1).bin", "payload_hex": "zz"}]}')
    assert main([str(path), str(cdclient_db)]) == 1
