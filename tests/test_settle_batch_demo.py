from __future__ import annotations

import json


def test_demo_batch_settles(capsys) -> None:
    from tools.settle_batch_demo import main

    assert main([]) == 0

    out = capsys.readouterr().out
    assert "[settle-demo] batch digest=0x" in out
    assert "[settle-demo] OK:" in out


def test_float_in_payload_file_is_a_parse_failure(tmp_path, capsys) -> None:
    from tools.settle_batch_demo import _demo_payload, main

    payload = _demo_payload()
    payload["value"] = 1.5
    path = tmp_path / "batch.json"
    path.write_text(json.dumps(payload), encoding="utf-8")

    assert main(["--payload", str(path)]) == 1

    out = capsys.readouterr().out
    assert "[settle-demo] FAIL [parse]" in out
    assert "not canonically encodable" in out


def test_invalid_json_payload_file_is_a_parse_failure(tmp_path, capsys) -> None:
    from tools.settle_batch_demo import main

    path = tmp_path / "batch.json"
    path.write_text("{not json", encoding="utf-8")

    assert main(["--payload", str(path)]) == 1
    assert "[settle-demo] FAIL [parse]" in capsys.readouterr().out
