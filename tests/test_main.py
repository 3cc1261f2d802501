"""Tests for the command line entry point."""

import argparse
import json

import pytest

from cstruct_layout.infrastructure.logging import LoggerSetup
from cstruct_layout.main import main, parse_args, parse_type_size

PACKET_HEADER = """\
#include <stdint.h>

struct Packet {
    char kind;
    uint32_t length;
    char flag;
};

typedef struct {
    double value;
    int id;
} Sample;
"""


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Temporary working directory with one header; logging reset afterwards."""
    monkeypatch.chdir(tmp_path)
    header = tmp_path / "packet.h"
    header.write_text(PACKET_HEADER, encoding="utf-8")
    LoggerSetup.reset()
    yield tmp_path
    LoggerSetup.reset()


def run_main(*argv: str) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(list(argv))
    return exc_info.value.code


@pytest.mark.unit
class TestArgumentParsing:
    """Test argument parsing helpers."""

    def test_parse_type_size(self):
        assert parse_type_size("Vec3=12") == ("Vec3", 12)
        assert parse_type_size("unsigned long=4") == ("unsigned long", 4)

    @pytest.mark.parametrize("value", ["Vec3", "=4", "Vec3=big", "Vec3=0", "Vec3=-2"])
    def test_parse_type_size_rejects(self, value):
        with pytest.raises(argparse.ArgumentTypeError):
            parse_type_size(value)

    def test_defaults(self):
        args = parse_args(["a.h"])
        assert args.output is None
        assert args.target_alignment is None
        assert args.type_size == []
        assert not args.show_optimized

    def test_repeated_type_sizes(self):
        args = parse_args(["a.h", "--type-size", "A=2", "--type-size", "B=6"])
        assert dict(args.type_size) == {"A": 2, "B": 6}


@pytest.mark.integration
class TestMain:
    """Run the command line tool end to end."""

    def test_report_to_stdout(self, workspace, capsys):
        code = run_main("packet.h", "--log-dir", str(workspace / "logs"))
        assert code == 0
        report = json.loads(capsys.readouterr().out)
        assert report["file"] == "packet.h"
        structs = {s["name"]: s for s in report["structs"]}
        assert structs["Packet"]["totalSize"] == 12
        assert structs["Packet"]["optimizedSize"] == 8
        assert structs["Sample"]["totalSize"] == 16
        assert report["summary"]["structsAnalyzed"] == 2
        assert list((workspace / "logs").glob("cstruct_layout_*.log"))

    def test_report_to_output_directory(self, workspace, capsys):
        code = run_main("packet.h", "-o", "reports", "--log-dir", str(workspace / "logs"))
        assert code == 0
        assert capsys.readouterr().out == ""
        report = json.loads((workspace / "reports" / "packet.layout.json").read_text(encoding="utf-8"))
        assert [s["name"] for s in report["structs"]] == ["Packet", "Sample"]

    def test_target_alignment_and_type_size(self, workspace, capsys):
        (workspace / "vec.h").write_text("struct M { char c; Vec3 pos; void *p; };\n", encoding="utf-8")
        code = run_main(
            "vec.h", "--target-alignment", "4", "--type-size", "Vec3=12", "--log-dir", str(workspace / "logs")
        )
        assert code == 0
        record = json.loads(capsys.readouterr().out)["structs"][0]
        assert [f["offset"] for f in record["fields"]] == [0, 4, 16]
        assert record["totalSize"] == 20

    def test_show_optimized(self, workspace, capsys):
        code = run_main("packet.h", "--show-optimized", "--log-dir", str(workspace / "logs"))
        assert code == 0
        structs = json.loads(capsys.readouterr().out)["structs"]
        assert "uint32_t length; // offset 0, size 4" in structs[0]["optimizedCode"]
        assert all("optimizedCode" in s for s in structs)

    def test_several_files_print_a_list(self, workspace, capsys):
        (workspace / "other.h").write_text("union U { int i; char c; };\n", encoding="utf-8")
        code = run_main("packet.h", "other.h", "--log-dir", str(workspace / "logs"))
        assert code == 0
        reports = json.loads(capsys.readouterr().out)
        assert [r["file"] for r in reports] == ["packet.h", "other.h"]

    def test_missing_file_fails_but_others_continue(self, workspace, capsys):
        code = run_main("missing.h", "packet.h", "--log-dir", str(workspace / "logs"))
        assert code == 1
        report = json.loads(capsys.readouterr().out)
        assert report["file"] == "packet.h"

    def test_invalid_max_passes(self, workspace, capsys):
        code = run_main("packet.h", "--max-passes", "0", "--log-dir", str(workspace / "logs"))
        assert code == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_invalid_type_size_argument(self, workspace):
        assert run_main("packet.h", "--type-size", "Vec3") == 2

    def test_unsupported_target_alignment(self, workspace):
        assert run_main("packet.h", "--target-alignment", "16") == 2

    def test_environment_configuration(self, workspace, capsys, monkeypatch):
        monkeypatch.setenv("CSTRUCT_TARGET_ALIGNMENT", "4")
        (workspace / "ptr.h").write_text("struct P { char c; void *p; };\n", encoding="utf-8")
        code = run_main("ptr.h", "--log-dir", str(workspace / "logs"))
        assert code == 0
        assert json.loads(capsys.readouterr().out)["structs"][0]["totalSize"] == 8
