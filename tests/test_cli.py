import json

from address_resolution.cli import main

DATA = {
    "customers": {
        "Acme Foods": {
            "addresses": [
                {"street": "123 Main St", "city": "Chicago", "state": "IL", "default_pickup": True},
                {"street": "456 Main St", "city": "Chicago", "state": "IL"},
            ]
        },
        "Beta Steel": {"addresses": [{"street": "123 Main St", "city": "Chicago", "state": "IL"}]},
    }
}


def write_data(tmp_path):
    path = tmp_path / "book.json"
    path.write_text(json.dumps(DATA), encoding="utf-8")
    return str(path)


def test_suggest_json_output(tmp_path, capsys):
    code = main(["--data", write_data(tmp_path), "--json", "suggest", "123 main", "--customer", "Acme Foods"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["suggestions"][0]["address"] == "123 Main St, Chicago, IL"


def test_link_text_output(tmp_path, capsys):
    code = main(["--data", write_data(tmp_path), "link", "123 Main St, Chicago, IL"])
    assert code == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["multiple", "* Acme Foods", "* Beta Steel"]


def test_customers_subcommand(tmp_path, capsys):
    code = main(["--data", write_data(tmp_path), "--json", "customers", "bet"])
    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["customers"][0]["name"] == "Beta Steel"


def test_missing_data_file(tmp_path, capsys):
    code = main(["--data", str(tmp_path / "missing.json"), "customers", "x"])
    assert code == 2
    assert "not a file" in capsys.readouterr().err
