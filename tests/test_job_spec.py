from __future__ import annotations

import json
from dataclasses import replace

import pytest

from sage_launcher.core.errors import ValidationError
from sage_launcher.models import (
    DatabaseConfig,
    EnzymeConfig,
    JobSpec,
    QuantConfig,
    Tolerance,
)


def _spec(**overrides) -> JobSpec:
    base = JobSpec(output_directory="/tmp/out").with_files("/data/human.fasta", "/data/run1.mzML")
    return replace(base, **overrides)


def test_default_spec_matches_launcher_defaults() -> None:
    spec = JobSpec()

    assert spec.database.bucket_size == 32768
    assert spec.database.enzyme.cleave_at == "KR"
    assert spec.database.ion_kinds == ("b", "y")
    assert spec.precursor_tol == Tolerance("ppm", -10.0, 10.0)
    assert spec.precursor_charge == (2, 4)
    assert spec.quant.enabled and spec.quant.kind == "lfq"
    assert spec.output_directory


def test_validate_reports_every_missing_required_field() -> None:
    spec = JobSpec(output_directory=" ")

    with pytest.raises(ValidationError) as exc:
        spec.validate()

    msg = exc.value.message
    assert "FASTA file is not selected" in msg
    assert "mzML file is not selected" in msg
    assert "Output directory is not set" in msg


def test_dotd_folders_count_as_spectra_input() -> None:
    spec = _spec(mzml_paths=(), dotd_paths=("/data/run1.d",))

    spec.validate()


def test_tolerance_unit_switch_resets_to_unit_default() -> None:
    assert Tolerance.default_for("da") == Tolerance("da", -0.02, 0.02)
    assert Tolerance.default_for("ppm").to_dict() == {"ppm": [-10.0, 10.0]}


def test_restrict_only_applies_to_single_character() -> None:
    assert EnzymeConfig(restrict_char="P").restrict == "P"
    assert EnzymeConfig(restrict_char="PK").restrict is None
    assert EnzymeConfig(enable_restrict=False).restrict is None


def test_json_round_trip_preserves_nested_settings() -> None:
    spec = _spec(
        fragment_tol=Tolerance.default_for("da"),
        quant=QuantConfig(kind="tmt", isobaric="Tmt16"),
        database=replace(DatabaseConfig(fasta="/data/human.fasta"), ion_kinds=("b", "y", "c")),
    )

    loaded = JobSpec.from_dict(json.loads(spec.to_json()))

    assert loaded == spec


def test_serialized_tolerance_uses_unit_key() -> None:
    data = json.loads(_spec().to_json())

    assert data["precursor_tol"] == {"ppm": [-10.0, 10.0]}
    assert data["database"]["fasta"] == "/data/human.fasta"


def test_load_reads_yaml(tmp_path) -> None:
    path = tmp_path / "search.yaml"
    path.write_text(
        "database:\n"
        "  fasta: /data/human.fasta\n"
        "  enzyme:\n"
        "    missed_cleavages: 1\n"
        "precursor_tol:\n"
        "  da: [-0.5, 0.5]\n"
        "mzml_paths:\n"
        "  - /data/run1.mzML\n"
        "output_directory: /tmp/out\n",
        encoding="utf-8",
    )

    spec = JobSpec.load(path)

    assert spec.database.enzyme.missed_cleavages == 1
    assert spec.database.enzyme.max_len == 50
    assert spec.precursor_tol == Tolerance("da", -0.5, 0.5)
    assert spec.mzml_paths == ("/data/run1.mzML",)


def test_load_rejects_unparseable_file(tmp_path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ValidationError, match="cannot parse"):
        JobSpec.load(path)


def test_from_dict_rejects_bad_tolerance() -> None:
    with pytest.raises(ValidationError):
        JobSpec.from_dict({"precursor_tol": {"mmu": [-1, 1]}})


def test_null_required_fields_are_validation_errors(tmp_path) -> None:
    path = tmp_path / "search.json"
    path.write_text(
        json.dumps({"database": {"fasta": None}, "mzml_paths": ["/data/run1.mzML"]}),
        encoding="utf-8",
    )

    with pytest.raises(ValidationError, match="database.fasta must be a string"):
        JobSpec.load(path)
    with pytest.raises(ValidationError, match="output_directory must be a string"):
        JobSpec.from_dict({"output_directory": None})

    # Built in code rather than loaded, None still reads as "not selected".
    spec = _spec(database=replace(DatabaseConfig(), fasta=None), output_directory=None)
    assert spec.problems() == ["FASTA file is not selected", "Output directory is not set"]


@pytest.mark.parametrize(
    "data",
    [
        {"mzml_paths": "run1.mzML"},
        {"dotd_paths": "/data/run1.d"},
        {"mzml_paths": [None]},
        {"database": {"ion_kinds": "by"}},
    ],
)
def test_list_fields_reject_scalars(data) -> None:
    with pytest.raises(ValidationError, match="must be"):
        JobSpec.from_dict(data)


def test_sage_input_merges_dotd_paths_and_uses_restrict() -> None:
    spec = _spec(dotd_paths=("/data/run2.d",))

    doc = spec.to_sage_input()

    assert doc["mzml_paths"] == ["/data/run1.mzML", "/data/run2.d"]
    assert doc["database"]["enzyme"]["restrict"] == "P"
    assert doc["database"]["ion_kinds"] == ["b", "y"]
    assert doc["precursor_charge"] == [2, 4]


def test_sage_input_quant_block_follows_selection() -> None:
    lfq = _spec().to_sage_input()["quant"]
    tmt = _spec(quant=QuantConfig(kind="tmt", isobaric="Tmt11")).to_sage_input()["quant"]
    off = _spec(quant=QuantConfig(enabled=False)).to_sage_input()["quant"]

    assert lfq["lfq"] is True and lfq["tmt"] is None
    assert lfq["lfq_settings"]["peak_scoring"] == "Hybrid"
    assert tmt["tmt"] == "Tmt11" and tmt["tmt_settings"] == {"level": 3, "sn": False}
    assert off is None
