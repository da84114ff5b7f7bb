"""Tests for the command line entry point."""

from py_hexgen.cli import build_parser, main


class TestCli:
    """Test the hexgen command."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.water_level == 40
        assert args.temperature == "temperate"
        assert args.seed is None

    def test_generate(self, capsys):
        code = main(["--seed", "cli", "--map-size", "8", "--log-level", "WARNING"])
        out = capsys.readouterr().out
        assert code == 0
        assert out.startswith("Seed: cli\n")
        assert "Map complete: 8x8" in out
        assert "River segments: " in out

    def test_invalid_water_level(self, capsys):
        code = main(["--water-level", "120", "--log-level", "WARNING"])
        assert code == 2
        assert "Invalid options" in capsys.readouterr().err
