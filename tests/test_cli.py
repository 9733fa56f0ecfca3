"""
Test the quote-core command line.
"""
import json

from quote_core.cli import main


def test_rate_sheet_command(capsys):
    assert main(["rate-sheet"]) == 0
    out = capsys.readouterr().out
    assert "TRANSLOADING" in out
    assert "Zero-rate warnings" not in out


def test_quote_command(tmp_path, capsys):
    extraction = tmp_path / "extracted.json"
    extraction.write_text(json.dumps({"container_size": "40ft", "palletized": True, "quantity": 0}), encoding="utf-8")
    email = tmp_path / "email.txt"
    email.write_text("Please quote unloading our container.", encoding="utf-8")

    assert main(["quote", "--extraction", str(extraction), "--email", str(email)]) == 0
    out = capsys.readouterr().out
    assert "| **Total** | **$345.00** |" in out
    assert "--PRICE-FOOTER--" in out

    assert main(["quote", "--extraction", str(extraction), "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["status"] == "quoted"
    assert data["quote"]["total"] == 345.0


def test_quote_command_clarification(tmp_path, capsys):
    extraction = tmp_path / "extracted.json"
    extraction.write_text("{}", encoding="utf-8")
    assert main(["quote", "--extraction", str(extraction), "--service-type", "drayage"]) == 0
    assert "container weight (lbs)" in capsys.readouterr().out


def test_reprocess_command(tmp_path, capsys):
    records = tmp_path / "records.json"
    records.write_text(
        json.dumps([{"id": 1, "body": "", "normalized": {"containerSize": "40", "palletized": True, "pieces": 0}}]),
        encoding="utf-8",
    )
    assert main(["reprocess", str(records)]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["updated"] == 1
    assert summary["records"][0]["total"] == 345.0
