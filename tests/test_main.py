from conftest import legacy_post

from zine2mdx.main import main


def _write_config(site):
    cfg = site / "zine2mdx.yml"
    cfg.write_text("manifest:\n  format_command: []\n", encoding="utf-8")
    return cfg


def test_migrate_command(site):
    (site / "content" / "posts" / "a.smd").write_text(legacy_post(), encoding="utf-8")
    assert main(["--config", str(_write_config(site)), "migrate"]) == 0
    assert (site / "src" / "content" / "blog" / "a.mdx").exists()


def test_all_command_runs_images_too(site):
    (site / "content" / "posts" / "a.smd").write_text(legacy_post(), encoding="utf-8")
    assert main(["--config", str(_write_config(site)), "all"]) == 0
    assert (site / "src" / "content" / "blog" / "a.mdx").exists()
    assert (site / "assets.zig").exists()


def test_failures_give_exit_code_one(site, capsys):
    (site / "content" / "posts" / "a.smd").write_text("broken\n", encoding="utf-8")
    assert main(["--config", str(_write_config(site)), "migrate"]) == 1
    assert "1 item(s) failed" in capsys.readouterr().err


def test_missing_config_file(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "nope.yml"), "images"]) == 2
    assert "not found" in capsys.readouterr().err
