import json

from eigo_ms import cli


def test_cli_catalog(capsys):
    code = cli.main(["--catalog"])
    assert code == 0
    out = capsys.readouterr().out
    assert "Business (business)" in out
    assert "[0] The History of Tea / お茶の歴史" in out


def test_cli_catalog_json(capsys):
    code = cli.main(["--catalog", "--json"])
    assert code == 0
    out = capsys.readouterr().out
    data = json.loads(out[out.index("{"):])
    assert len(data["categories"]) == 10


def test_cli_generate_lesson_json(capsys):
    code = cli.main(["--category", "business", "--index", "0", "--json"])
    assert code == 0
    out = capsys.readouterr().out
    assert '"category": "business"' in out
    assert '"englishText"' in out


def test_cli_plan_dry_run(capsys):
    code = cli.main(["--text", "One. Two.", "--plan", "--rate", "0.75", "--json"])
    assert code == 0
    out = capsys.readouterr().out
    assert "PLAN_OK" in out
    assert '"dry_run": true' in out
    assert '"rate": 0.75' in out


def test_cli_lesson_plan(capsys):
    code = cli.main(["--category", "general", "--topic", "Coffee Culture", "--plan"])
    assert code == 0
    assert "PLAN_OK" in capsys.readouterr().out


def test_cli_dialogue_plan_without_voices_fails(capsys):
    code = cli.main(["--text", "Speaker A: Hi.\n\nSpeaker B: Hello.", "--plan", "--dialogue", "--json"])
    assert code == 1
    assert "NO_VOICES" in capsys.readouterr().out


def test_cli_unknown_category(capsys):
    code = cli.main(["--category", "toeic_part9", "--index", "0", "--json"])
    assert code == 1
    assert "INVALID_INPUT" in capsys.readouterr().out


def test_cli_category_needs_index_or_topic(capsys):
    assert cli.main(["--category", "daily"]) == 2


def test_cli_usage_without_arguments(capsys):
    assert cli.main([]) == 2
    assert "Provide --catalog" in capsys.readouterr().out


def test_cli_speak_without_backend_reports_error(capsys):
    code = cli.main(["--text", "Hello.", "--speak"])
    assert code == 1
    assert "Audio playback is not available" in capsys.readouterr().out


def test_cli_voices_on_null_backend(capsys):
    assert cli.main(["--voices"]) == 0
    assert "No English voices found (null backend)." in capsys.readouterr().out
