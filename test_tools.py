#!/usr/bin/env python3
"""
Test the command-line tools: node map, economy, report, exports, snapshot,
configuration profiles and the analyzer entry point.
"""

import csv
import json
import os

import matplotlib.pyplot as plt
import pandas as pd
import pytest
from matplotlib.figure import Figure

import log_samples as s
from arbitration_log.log import ParseOptions, parse_text
from arbitration_log.log.models import MissionKind, MissionResult, MissionStatus, PhaseCount, StartKind
from arbitration_log.tools import EconomyCalculator, LogFileNotFoundError, MissionAnalyzer, NodeMap
from arbitration_log.tools import mission_analyzer, node_map
from arbitration_log.tools.exporter import MissionExporter
from arbitration_log.tools.report import (format_duration, format_per_min, format_phases, log_report,
                                          mission_lines)
from arbitration_log.tools.snapshot import SnapshotRenderer
from config import Config

REGIONS = {
    "SolNode64": {
        "name": "/Lotus/Language/Casta",
        "systemName": "/Lotus/Language/Ceres",
        "missionName": "/Lotus/Language/Defense",
        "factionName": "/Lotus/Language/Corpus",
    },
    "SolNode72": {"name": "/Lotus/Language/Unknown", "systemName": None},
}
DICTIONARY = {
    "/Lotus/Language/Casta": "卡斯塔",
    "/Lotus/Language/Ceres": "谷神星",
    "/Lotus/Language/Defense": "防御",
    "/Lotus/Language/Corpus": "  ",
}


def sample_text():
    lines = s.arbitration_mission(100, node="SolNode64", length=300, drones=6)
    lines += [s.mission_name(600), s.host_loading(601, "SolNode72"), s.started(610), s.drone(620),
              s.round_transmission(700), s.drone(701), s.drone(702), s.round_transmission(790),
              s.end_of_match(800), s.ending(805), s.mission_end(807, "SolNode72")]
    return s.to_text(lines)


@pytest.fixture
def missions():
    return parse_text(sample_text(), ParseOptions(count=None)).missions


@pytest.fixture
def config(tmp_path):
    return {"general": {"output_path": str(tmp_path / "out")}}


# Node map

def test_node_map_build():
    nodes = NodeMap.build(REGIONS, DICTIONARY)
    assert nodes["SolNode64"] == {
        "nodeId": "SolNode64",
        "nodeName": "卡斯塔",
        "systemName": "谷神星",
        "missionType": "防御",
        "faction": "/Lotus/Language/Corpus",
    }
    assert nodes["SolNode72"]["nodeName"] == "/Lotus/Language/Unknown"
    assert nodes["SolNode72"]["systemName"] is None


def test_node_map_display_line():
    node_map = NodeMap(nodes={
        "SolNode64": {"nodeName": "卡斯塔", "systemName": "谷神星", "missionType": "防御", "faction": "Corpus"},
        "SolNode72": {"nodeName": "Sechura", "systemName": "", "missionType": None},
    })
    assert node_map.display_line("SolNode64") == "卡斯塔 · 谷神星 · 防御 · Corpus"
    assert node_map.display_line("SolNode72") == "Sechura"
    assert node_map.display_line("SolNode1") == "SolNode1"
    assert node_map.display_line(None) == ""


def test_node_map_missing_file(tmp_path):
    node_map = NodeMap()
    assert node_map.load(str(tmp_path / "missing.json")) == 0
    assert node_map.display_line("SolNode64") == "SolNode64"


def test_node_map_cli_build_and_lookup(tmp_path, monkeypatch):
    monkeypatch.setenv(Config.CONFIG_DIR_ENV, str(tmp_path / "profiles"))
    regions = tmp_path / "ExportRegions.json"
    dictionary = tmp_path / "dict.zh.json"
    output = tmp_path / "node-map.zh.json"
    regions.write_text(json.dumps(REGIONS), encoding="utf-8")
    dictionary.write_text(json.dumps(DICTIONARY, ensure_ascii=False), encoding="utf-8")

    assert node_map.main(["build", str(regions), str(dictionary), str(output)]) == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["SolNode64"]["nodeName"] == "卡斯塔"

    assert node_map.main(["lookup", "SolNode64", "--map", str(output)]) == 0
    assert node_map.main(["build", str(tmp_path / "nope.json"), str(dictionary), str(output)]) == 1


# Economy

def make_mission(index=1, drones=100, total_sec=3600.0, rounds=4):
    return MissionResult(index=index, start_kind=StartKind.MISSION_NAME, start_line=1,
                         status=MissionStatus.OK, shield_drone_count=drones,
                         total_sec=total_sec, round_count=rounds)


def test_economy_expected_drops():
    calculator = EconomyCalculator(drop_chance=0.06, multipliers={"booster": 2.0, "blessing": 1.25})
    [row] = calculator.calculate([make_mission()])
    assert calculator.combined_multiplier == pytest.approx(2.5)
    assert row["index"] == 1
    assert row["drones_per_hour"] == pytest.approx(100.0)
    assert row["expected_drops"] == pytest.approx(15.0)
    assert row["expected_drops_per_hour"] == pytest.approx(15.0)
    assert row["rotation_rewards"] == pytest.approx(12.0)


def test_economy_without_duration():
    [row] = EconomyCalculator().calculate([make_mission(total_sec=None, rounds=None)])
    assert row["drones_per_hour"] is None
    assert row["expected_drops_per_hour"] is None
    assert row["expected_drops"] == pytest.approx(6.0)
    assert row["rotation_rewards"] == 0.0


def test_economy_from_config():
    calculator = EconomyCalculator.from_config({"economy": {"drop_chance": 0.1, "rotation_reward": 5}})
    assert calculator.drop_chance == 0.1
    assert calculator.rotation_reward == 5.0
    assert calculator.combined_multiplier == 1.0
    assert EconomyCalculator().calculate([]) == []


def test_economy_rejects_bad_drop_chance():
    with pytest.raises(ValueError):
        EconomyCalculator(drop_chance=1.5)


# Report

@pytest.mark.parametrize("seconds,expected", [
    (12.34, "12.3s"),
    (0.0, "0.0s"),
    (307.9, "5m 7s"),
    (3720.0, "1h 2m"),
    (None, "-"),
    (float("nan"), "-"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_format_per_min():
    assert format_per_min(2.0) == "2.00"
    assert format_per_min(None) == "-"


def test_mission_report_lines(missions):
    rounds = missions[1]
    assert rounds.mission_kind == MissionKind.ROUND
    assert rounds.phases == (PhaseCount(MissionKind.ROUND, 1, 1), PhaseCount(MissionKind.ROUND, 2, 2))
    assert format_phases(rounds) == "R1:1 R2:2"
    assert format_phases(missions[0]) == "-"
    lines = mission_lines(rounds, "Sechura · Pluto")
    assert lines[0] == "Recent valid mission #2"
    assert lines[1] == "Sechura · Pluto (Casta (Ceres))"
    assert "Rounds: 2" in lines
    assert "Shield drones: 3" in lines


def test_log_report_counts_missions(missions):
    result = parse_text(sample_text(), ParseOptions(count=None))
    assert log_report(result, {m.index: "" for m in missions}) == 2
    assert log_report(parse_text("")) == 0


# Exports

def test_export_csv(config, missions):
    exporter = MissionExporter(config)
    path = exporter.run(missions, "csv", "missions.csv", node_lines={1: "Casta", 2: "Sechura"})
    assert path == os.path.join(config["general"]["output_path"], "missions.csv")
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert [row["node_id"] for row in rows] == ["SolNode64", "SolNode72"]
    assert [row["node"] for row in rows] == ["Casta", "Sechura"]
    assert rows[1]["phases"] == "1:1 2:2"


def test_export_excel(config, missions):
    economy_rows = EconomyCalculator().calculate(missions)
    path = MissionExporter(config).run(missions, "excel", "missions.xlsx", economy_rows=economy_rows)
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    assert set(sheets) == {"Missions", "Phases"}
    assert list(sheets["Missions"]["node_id"]) == ["SolNode64", "SolNode72"]
    assert "expected_drops" in sheets["Missions"].columns
    phases = sheets["Phases"]
    assert list(phases["kind"]) == ["round", "round"]
    assert list(phases["shield_drones"]) == [1, 2]


def test_export_unknown_format(config, missions):
    with pytest.raises(ValueError):
        MissionExporter(config).run(missions, "xml")


def test_phase_rows_empty_for_unclassified(missions):
    assert MissionExporter.phase_rows(missions[:1]) == []


# Snapshot

def test_snapshot_png(config, missions):
    path = SnapshotRenderer(config).render(missions, "snapshot.png", node_lines={1: "Casta"})
    with open(path, "rb") as f:
        assert f.read(8) == b"\x89PNG\r\n\x1a\n"


def test_snapshot_closes_figure_when_save_fails(config, missions, monkeypatch):
    plt.close("all")

    def fail_save(self, *args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(Figure, "savefig", fail_save)
    with pytest.raises(OSError):
        SnapshotRenderer(config).render(missions, "broken.png")
    assert plt.get_fignums() == []


def test_snapshot_requires_missions(config):
    with pytest.raises(ValueError):
        SnapshotRenderer(config).render([])


# Tool base

def test_output_placement_and_csv_rows(config, tmp_path):
    exporter = MissionExporter(config)
    out_dir = config["general"]["output_path"]
    assert exporter.output_path_for("a/b.csv") == os.path.join(out_dir, "a", "b.csv")
    assert exporter.output_path_for(str(tmp_path / "abs.csv")) == str(tmp_path / "abs.csv")
    assert exporter.get_config("general.output_path") == out_dir
    assert exporter.get_config("general.output_path.deeper", "x") == "x"

    path = exporter.write_csv([["SolNode64", 3]], "plain.csv", headers=["node", "drones"])
    with open(path, newline="", encoding="utf-8") as f:
        assert list(csv.reader(f)) == [["node", "drones"], ["SolNode64", "3"]]

    empty = exporter.write_csv([], "empty.csv", headers=["node"])
    with open(empty, encoding="utf-8") as f:
        assert f.read().strip() == "node"


def test_timestamped_filename(config):
    name = MissionExporter(config).generate_timestamped_filename("missions", "csv", prefix="pc")
    assert name.startswith("missions_pc_") and name.endswith(".csv")
    assert "__" not in name


# Config

def test_config_profiles(tmp_path):
    profiles = tmp_path / "profiles"
    config = Config(config_dir=str(profiles))
    assert (profiles / "default.json").exists()
    assert config.get() == {}

    (profiles / "my_pc.json").write_text(json.dumps({
        "parser": {"count": 5},
        "paths": {"node_map": "node-map.json", "log_file": str(tmp_path / "EE.log")},
    }), encoding="utf-8")
    assert config.list_profiles() == ["default", "my_pc"]
    assert config.switch_profile("my_pc")
    assert config.get("parser.count") == 5
    assert config.get("parser.missing", 7) == 7
    assert config.get_path("paths.node_map") == str(profiles / "node-map.json")
    assert config.get_path("paths.log_file") == str(tmp_path / "EE.log")
    assert config.get_path("paths.unset") == ""
    assert not config.switch_profile("missing")


def test_config_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(Config.CONFIG_DIR_ENV, str(tmp_path))
    config = Config(profile="absent")
    assert config.config_dir == str(tmp_path)
    assert config.get() == {}


# Analyzer

def write_log(directory, name="EE.log"):
    path = directory / name
    path.write_bytes(sample_text().encode("utf-8"))
    return path


def test_resolve_log_path_in_directory(tmp_path, config):
    log_path = write_log(tmp_path)
    analyzer = MissionAnalyzer(config)
    assert analyzer.resolve_log_path(str(tmp_path)) == str(log_path)
    assert analyzer.resolve_log_path(str(log_path)) == str(log_path)

    with pytest.raises(LogFileNotFoundError):
        analyzer.resolve_log_path(str(tmp_path / "empty"))
    os.makedirs(tmp_path / "empty")
    with pytest.raises(LogFileNotFoundError):
        analyzer.resolve_log_path(str(tmp_path / "empty"))


def test_resolve_log_path_from_config(tmp_path, config):
    log_path = write_log(tmp_path, "ee.log")
    config["paths"] = {"log_file": str(tmp_path)}
    assert MissionAnalyzer(config).resolve_log_path() == str(log_path)


def test_analyzer_arguments_override_config(config):
    config["parser"] = {"count": 7, "min_duration_sec": 30, "chunk_size": 1024}
    analyzer = MissionAnalyzer(config, count=3)
    assert analyzer.options == ParseOptions(chunk_size=1024, min_duration_sec=30.0, count=3)
    assert MissionAnalyzer(config, keep_all=True).options.count is None


def test_analyzer_run(tmp_path, config):
    log_path = write_log(tmp_path)
    node_map_path = tmp_path / "node-map.json"
    node_map_path.write_text(json.dumps(NodeMap.build(REGIONS, DICTIONARY), ensure_ascii=False),
                             encoding="utf-8")

    analyzer = MissionAnalyzer(config, count=2)
    result = analyzer.run(str(log_path), export_format="csv", export_path="run.csv",
                          snapshot_path="run.png", node_map_path=str(node_map_path))

    assert result["success"]
    assert result["mission_count"] == 2
    assert result["valid_total"] == 2
    assert result["warnings"] == []
    assert os.path.isfile(result["output_file"])
    assert os.path.isfile(result["snapshot_file"])
    assert analyzer.node_lines(result["parse_result"])[1] == "卡斯塔 · 谷神星 · 防御 · /Lotus/Language/Corpus"


def test_analyzer_reports_progress(tmp_path, config):
    log_path = write_log(tmp_path)
    analyzer = MissionAnalyzer(config, chunk_size=64)
    analyzer.analyze(str(log_path))
    assert analyzer._last_reported == 1.0


def test_cli_main(tmp_path, monkeypatch):
    monkeypatch.setenv(Config.CONFIG_DIR_ENV, str(tmp_path / "profiles"))
    monkeypatch.chdir(tmp_path)
    log_path = write_log(tmp_path)

    assert mission_analyzer.main([str(log_path), "--count", "1", "--export", "excel"]) == 0
    assert any(name.endswith(".xlsx") for name in os.listdir(tmp_path / "output"))

    assert mission_analyzer.main(["--file", str(tmp_path / "missing.log")]) == 1

    empty = tmp_path / "empty.log"
    empty.write_text(s.to_text([s.noise(1)]), encoding="utf-8")
    assert mission_analyzer.main([str(empty)]) == 1

    assert mission_analyzer.main([str(log_path), "--chunk-size", "0"]) == 1


if __name__ == "__main__":
    exit(pytest.main([__file__]))
