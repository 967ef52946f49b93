"""Tests for project utilities: data I/O, cleanup, palettes, runners, MLflow helpers."""

import mlflow
import pandas as pd
import pytest
from utils import datatools
from utils.config import get_repo_root
from utils.config.clean import clean_directories, clean_patterns
from utils.mlflow import io as mlflow_io
from utils.plotting import palettes
from utils.runners import scripts as scripts_module


class TestDatatools:
    """Experiment paths and dataframe I/O."""

    def test_experiment_name(self, tmp_path):
        script = tmp_path / "Experiments" / "01-strategies" / "compute_strategies.py"
        assert datatools.get_experiment_name(script) == "01-strategies"

        nested = tmp_path / "Experiments" / "02-scaling" / "threads" / "compute.py"
        assert datatools.get_experiment_name(nested) == "02-scaling/threads"

    def test_experiment_name_outside_experiments(self, tmp_path):
        with pytest.raises(ValueError):
            datatools.get_experiment_name(tmp_path / "compute.py")
        with pytest.raises(ValueError):
            datatools.get_experiment_name(tmp_path / "Experiments" / "compute.py")

    def test_data_dir_mirrors_experiments(self, tmp_path):
        script = tmp_path / "Experiments" / "03-recurrence" / "compute_recurrence.py"
        data_dir = datatools.get_data_dir(script, create=False)
        figures_dir = datatools.get_figures_dir(script, create=False)

        assert data_dir == get_repo_root() / "data" / "03-recurrence"
        assert figures_dir == get_repo_root() / "figures" / "03-recurrence"

    @pytest.mark.parametrize("suffix", ["parquet", "csv"])
    def test_save_and_load(self, tmp_path, suffix):
        df = pd.DataFrame({"strategy": ["sequential", "joblib"], "wall_time": [0.5, 0.25]})
        path = datatools.save_simulation_data(df, tmp_path / "out" / f"results.{suffix}")

        assert path.exists()
        pd.testing.assert_frame_equal(datatools.load_simulation_data(path), df)

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError):
            datatools.save_simulation_data(pd.DataFrame(), tmp_path / "results.xlsx")

    def test_missing_data(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="compute_"):
            datatools.load_simulation_data(tmp_path / "missing.parquet")


class TestClean:
    """Removal of generated outputs."""

    def test_clean_directories(self, tmp_path):
        (tmp_path / "data" / "01-strategies").mkdir(parents=True)
        (tmp_path / "figures").mkdir()
        (tmp_path / "src").mkdir()

        cleaned, failed = clean_directories(["data", "figures", "mlruns"], repo_root=tmp_path)

        assert (cleaned, failed) == (2, 0)
        assert not (tmp_path / "data").exists()
        assert (tmp_path / "src").exists()

    def test_clean_patterns(self, tmp_path):
        cache = tmp_path / "src" / "__pycache__"
        cache.mkdir(parents=True)
        (cache / "mod.cpython-312.pyc").write_text("")
        (tmp_path / "stray.pyc").write_text("")
        (tmp_path / "keep.py").write_text("")

        cleaned, failed = clean_patterns(repo_root=tmp_path)

        assert failed == 0
        assert cleaned >= 2
        assert not cache.exists()
        assert not (tmp_path / "stray.pyc").exists()
        assert (tmp_path / "keep.py").exists()


class TestPalettes:
    def test_strategy_palette(self):
        colors = palettes.strategy_palette(["multiprocess", "custom", "multiprocess"])
        assert list(colors) == ["multiprocess", "custom"]
        assert colors["multiprocess"] == palettes.STRATEGY["multiprocess"]
        assert colors["custom"] in palettes.CATEGORICAL

    def test_categorical_cycles(self):
        assert len(palettes.get_categorical(10)) == 10
        assert palettes.get_categorical() == palettes.CATEGORICAL


class TestRunners:
    """Experiment script discovery and execution."""

    def test_discover_compute_scripts(self):
        scripts = scripts_module.discover_scripts("compute")
        names = [p.name for p in scripts]

        assert "compute_strategies.py" in names
        assert all(name.startswith("compute") for name in names)
        assert scripts == sorted(scripts)

    def test_discover_missing_directory(self):
        assert scripts_module.discover_scripts("plot", directory="does-not-exist") == []

    def test_run_scripts_parallel(self, tmp_path, monkeypatch):
        """Each script runs in its own subprocess; failures are counted."""
        monkeypatch.setattr(scripts_module, "get_repo_root", lambda: tmp_path)
        ok = tmp_path / "plot_ok.py"
        ok.write_text("print('fine')\n")
        bad = tmp_path / "plot_bad.py"
        bad.write_text("import sys\nsys.exit(3)\n")

        assert scripts_module.run_scripts_parallel([ok, bad], max_workers=2) == (1, 1)
        assert scripts_module.run_scripts_sequential([ok]) == (1, 0)
        assert scripts_module.run_scripts_parallel([]) == (0, 0)


class TestMlflowHelpers:
    """Logging helpers that do not need a tracking server."""

    def test_tracking_off(self):
        assert mlflow_io.setup_mlflow_tracking("off") is False

    def test_log_metrics_dict_drops_none(self, monkeypatch):
        logged = {}
        monkeypatch.setattr(mlflow, "log_metrics", logged.update)

        mlflow_io.log_metrics_dict({"wall_time": 0.5, "throughput": None, "fell_back": 0})

        assert logged == {"wall_time": 0.5, "fell_back": 0}

    def test_timeseries_without_active_run(self):
        assert mlflow.active_run() is None
        assert mlflow_io.log_timeseries_metrics({"wall_times": [0.1, 0.2]}) == 0
