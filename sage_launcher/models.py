"""Job spec: the validated, serializable description of one Sage search.

The configuration forms build a ``JobSpec``; the supervisor only reads it. The
tree serializes to JSON (and loads from JSON or YAML) and converts into the
input document understood by the Sage search engine.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Literal

import yaml

from sage_launcher.core.errors import ValidationError

ToleranceUnit = Literal["ppm", "da"]
QuantKind = Literal["lfq", "tmt"]

ION_KINDS = ("a", "b", "c", "x", "y", "z")
ISOBARIC_LABELS = ("Tmt6", "Tmt10", "Tmt11", "Tmt16", "Tmt18")

_DEFAULT_TOLERANCE: dict[str, tuple[float, float]] = {
    "ppm": (-10.0, 10.0),
    "da": (-0.02, 0.02),
}


def _known(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{what} must be an object, got {type(data).__name__}")
    return data


def _build(cls: type[Any], data: Any, what: str) -> Any:
    return cls(**_known(cls, _require_mapping(data, what)))


def _require_text(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{what} must be a string, got {type(value).__name__}")
    return value


def _require_strings(value: Any, what: str) -> tuple[str, ...]:
    # A bare string would otherwise be split into one-letter entries.
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{what} must be a list, got {type(value).__name__}")
    return tuple(_require_text(v, f"{what} entry") for v in value)


@dataclass(frozen=True, slots=True)
class EnzymeConfig:
    missed_cleavages: int = 2
    min_len: int = 5
    max_len: int = 50
    cleave_at: str = "KR"
    enable_restrict: bool = True
    restrict_char: str = "P"
    c_terminal: bool = True
    semi_enzymatic: bool = False

    @property
    def restrict(self) -> str | None:
        # More than one character is not a valid restriction; it is skipped.
        if self.enable_restrict and len(self.restrict_char) == 1:
            return self.restrict_char
        return None

    def to_sage(self) -> dict[str, Any]:
        return {
            "missed_cleavages": self.missed_cleavages,
            "min_len": self.min_len,
            "max_len": self.max_len,
            "cleave_at": self.cleave_at,
            "restrict": self.restrict,
            "c_terminal": self.c_terminal,
            "semi_enzymatic": self.semi_enzymatic,
        }


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    fasta: str = ""
    bucket_size: int = 32768
    enzyme: EnzymeConfig = field(default_factory=EnzymeConfig)
    peptide_min_mass: float = 500.0
    peptide_max_mass: float = 5000.0
    ion_kinds: tuple[str, ...] = ("b", "y")
    min_ion_index: int = 2
    max_variable_mods: int = 2
    decoy_tag: str | None = "rev_"
    generate_decoys: bool = True
    static_mods: dict[str, float] | None = field(default_factory=lambda: {"C": 57.0215})
    variable_mods: dict[str, list[float]] | None = field(
        default_factory=lambda: {"M": [15.9949]}
    )

    @classmethod
    def from_dict(cls, data: Any) -> DatabaseConfig:
        kwargs = _known(cls, _require_mapping(data, "database"))
        if "enzyme" in kwargs:
            kwargs["enzyme"] = _build(EnzymeConfig, kwargs["enzyme"], "enzyme")
        if "fasta" in kwargs:
            kwargs["fasta"] = _require_text(kwargs["fasta"], "database.fasta")
        if "ion_kinds" in kwargs:
            kinds = _require_strings(kwargs["ion_kinds"], "database.ion_kinds")
            kwargs["ion_kinds"] = tuple(k.lower() for k in kinds)
        return cls(**kwargs)

    def to_sage(self) -> dict[str, Any]:
        return {
            "bucket_size": self.bucket_size,
            "enzyme": self.enzyme.to_sage(),
            "peptide_min_mass": self.peptide_min_mass,
            "peptide_max_mass": self.peptide_max_mass,
            "ion_kinds": [k for k in ION_KINDS if k in self.ion_kinds],
            "min_ion_index": self.min_ion_index,
            "max_variable_mods": self.max_variable_mods,
            "decoy_tag": self.decoy_tag,
            "generate_decoys": self.generate_decoys,
            "static_mods": self.static_mods,
            "variable_mods": self.variable_mods,
            "fasta": self.fasta,
        }


@dataclass(frozen=True, slots=True)
class Tolerance:
    unit: ToleranceUnit = "ppm"
    low: float = -10.0
    high: float = 10.0

    @classmethod
    def default_for(cls, unit: ToleranceUnit) -> Tolerance:
        """Switching units resets the window to that unit's default."""
        low, high = _DEFAULT_TOLERANCE[unit]
        return cls(unit=unit, low=low, high=high)

    @classmethod
    def from_dict(cls, data: Any) -> Tolerance:
        data = _require_mapping(data, "tolerance")
        if len(data) != 1:
            raise ValidationError(f"tolerance must have exactly one unit, got {dict(data)!r}")
        unit, window = next(iter(data.items()))
        if unit not in _DEFAULT_TOLERANCE:
            raise ValidationError(f"unknown tolerance unit {unit!r}")
        low, high = window
        return cls(unit=unit, low=float(low), high=float(high))

    def to_dict(self) -> dict[str, list[float]]:
        return {self.unit: [self.low, self.high]}


@dataclass(frozen=True, slots=True)
class LfqSettings:
    peak_scoring: str = "Hybrid"
    integration: str = "Sum"
    spectral_angle: float = 0.7
    ppm_tolerance: float = 5.0
    combine_charge_states: bool = True


@dataclass(frozen=True, slots=True)
class TmtSettings:
    level: int = 3
    sn: bool = False


@dataclass(frozen=True, slots=True)
class QuantConfig:
    enabled: bool = True
    kind: QuantKind = "lfq"
    isobaric: str = "Tmt6"
    lfq: LfqSettings = field(default_factory=LfqSettings)
    tmt: TmtSettings = field(default_factory=TmtSettings)

    @classmethod
    def from_dict(cls, data: Any) -> QuantConfig:
        kwargs = _known(cls, _require_mapping(data, "quant"))
        if "lfq" in kwargs:
            kwargs["lfq"] = _build(LfqSettings, kwargs["lfq"], "lfq")
        if "tmt" in kwargs:
            kwargs["tmt"] = _build(TmtSettings, kwargs["tmt"], "tmt")
        return cls(**kwargs)

    def to_sage(self) -> dict[str, Any] | None:
        if not self.enabled:
            return None
        if self.kind == "tmt":
            return {
                "tmt": self.isobaric,
                "tmt_settings": asdict(self.tmt),
                "lfq": None,
                "lfq_settings": None,
            }
        return {
            "tmt": None,
            "tmt_settings": None,
            "lfq": True,
            "lfq_settings": asdict(self.lfq),
        }


@dataclass(frozen=True, slots=True)
class JobSpec:
    """Everything needed to run one search. Immutable; use ``dataclasses.replace``."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    precursor_tol: Tolerance = field(default_factory=Tolerance)
    fragment_tol: Tolerance = field(default_factory=Tolerance)
    precursor_charge: tuple[int, int] = (2, 4)
    isotope_errors: tuple[int, int] = (-1, 3)
    deisotope: bool = False
    chimera: bool = False
    wide_window: bool = False
    predict_rt: bool = True
    min_peaks: int = 15
    max_peaks: int = 150
    min_matched_peaks: int = 6
    max_fragment_charge: int = 1
    report_psms: int = 1
    mzml_paths: tuple[str, ...] = ()
    dotd_paths: tuple[str, ...] = ()
    quant: QuantConfig = field(default_factory=QuantConfig)
    annotate_matches: bool = False
    write_pin: bool = False
    score_type: str = "SageHyperScore"
    output_directory: str = field(default_factory=os.getcwd)

    def problems(self) -> list[str]:
        """Cheap structural checks; semantic validation belongs to the forms."""
        out: list[str] = []
        if not (self.database.fasta or "").strip():
            out.append("FASTA file is not selected")
        if not any((p or "").strip() for p in (*self.mzml_paths, *self.dotd_paths)):
            out.append("mzML file is not selected")
        if not (self.output_directory or "").strip():
            out.append("Output directory is not set")
        return out

    def validate(self) -> None:
        problems = self.problems()
        if problems:
            raise ValidationError("; ".join(problems))

    def with_files(self, fasta: str, *mzml: str) -> JobSpec:
        return replace(self, database=replace(self.database, fasta=fasta), mzml_paths=tuple(mzml))

    # -- serialization -------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["precursor_tol"] = self.precursor_tol.to_dict()
        out["fragment_tol"] = self.fragment_tol.to_dict()
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: Any) -> JobSpec:
        kwargs = _known(cls, _require_mapping(data, "job spec"))
        try:
            if "database" in kwargs:
                kwargs["database"] = DatabaseConfig.from_dict(kwargs["database"])
            for key in ("precursor_tol", "fragment_tol"):
                if key in kwargs:
                    kwargs[key] = Tolerance.from_dict(kwargs[key])
            if "quant" in kwargs:
                kwargs["quant"] = QuantConfig.from_dict(kwargs["quant"])
            for key in ("precursor_charge", "isotope_errors"):
                if key in kwargs:
                    lo, hi = kwargs[key]
                    kwargs[key] = (int(lo), int(hi))
            for key in ("mzml_paths", "dotd_paths"):
                if key in kwargs:
                    kwargs[key] = _require_strings(kwargs[key], key)
            if "output_directory" in kwargs:
                kwargs["output_directory"] = _require_text(
                    kwargs["output_directory"], "output_directory"
                )
            return cls(**kwargs)
        except (TypeError, ValueError) as e:
            raise ValidationError("malformed job spec", cause=e) from e

    @classmethod
    def load(cls, path: str | Path) -> JobSpec:
        """Load a spec from JSON, or YAML for ``.yaml``/``.yml`` files."""
        p = Path(path)
        try:
            text = p.read_text(encoding="utf-8")
        except OSError as e:
            raise ValidationError(f"cannot read job spec {p}", cause=e) from e
        try:
            if p.suffix.lower() in {".yaml", ".yml"}:
                data = yaml.safe_load(text)
            else:
                data = json.loads(text)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ValidationError(f"cannot parse job spec {p}", cause=e) from e
        return cls.from_dict(data)

    def write(self, path: str | Path) -> Path:
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(self.to_json(), encoding="utf-8")
        return p

    # -- engine input --------------------------------------------------

    def to_sage_input(self) -> dict[str, Any]:
        """Input document for the Sage CLI. ``.d`` folders are searched like mzML files."""
        return {
            "database": self.database.to_sage(),
            "precursor_tol": self.precursor_tol.to_dict(),
            "fragment_tol": self.fragment_tol.to_dict(),
            "precursor_charge": list(self.precursor_charge),
            "isotope_errors": list(self.isotope_errors),
            "deisotope": self.deisotope,
            "chimera": self.chimera,
            "wide_window": self.wide_window,
            "predict_rt": self.predict_rt,
            "min_peaks": self.min_peaks,
            "max_peaks": self.max_peaks,
            "min_matched_peaks": self.min_matched_peaks,
            "max_fragment_charge": self.max_fragment_charge,
            "report_psms": self.report_psms,
            "quant": self.quant.to_sage(),
            "annotate_matches": self.annotate_matches,
            "write_pin": self.write_pin,
            "score_type": self.score_type,
            "output_directory": self.output_directory,
            "mzml_paths": [*self.mzml_paths, *self.dotd_paths],
        }
