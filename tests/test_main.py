"""
Tests for the console entry point.
"""

import main
from core.persistence import PersistenceError


class TestCommands:
    def test_import_then_status(self, tmp_path, capsys):
        db_url = f"sqlite:///{tmp_path / 'cli.db'}"
        words = tmp_path / "words.txt"
        words.write_text("hola ; hello\nadiós ; goodbye\n", encoding="utf-8")

        assert main.main(["--database", db_url, "import", str(words),
                          "--lesson", "es_a1_01", "--pair", "en-es"]) == 0
        assert "Imported 2 new cards" in capsys.readouterr().out

        assert main.main(["--database", db_url, "status"]) == 0
        out = capsys.readouterr().out
        assert "Cards:        2" in out
        assert "Due today:    2" in out

    def test_due_and_export(self, tmp_path, capsys):
        db_url = f"sqlite:///{tmp_path / 'cli.db'}"
        words = tmp_path / "words.csv"
        words.write_text("source,target\nperro,dog\n", encoding="utf-8")
        main.main(["--database", db_url, "import", str(words), "--lesson", "l2", "--pair", "en-es"])
        capsys.readouterr()

        main.main(["--database", db_url, "due"])
        assert "l2_perro" in capsys.readouterr().out

        out_csv = tmp_path / "export.csv"
        assert main.main(["--database", db_url, "export", str(out_csv)]) == 0
        assert "perro" in out_csv.read_text(encoding="utf-8")

    def test_unreadable_database_exits_with_error(self, monkeypatch, capsys):
        def locked(url=None):
            raise PersistenceError("database is locked")

        monkeypatch.setattr(main, "build_scheduler", locked)
        assert main.main(["status"]) == 1
        assert capsys.readouterr().out == ""
