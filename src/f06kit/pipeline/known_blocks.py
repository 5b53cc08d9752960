"""Built-in block recognizers for MSC/Simcenter and MYSTRAN output.

Registration order matters: each dialect-specific recognizer comes before
the lax grid-vector fallbacks that would also accept its table.
"""

from functools import lru_cache

from f06kit.errors import RowShapeError
from f06kit.models import Column, ColumnType, Solver
from f06kit.pipeline.stage_classify import LineKind
from f06kit.pipeline.stage_registry import (
    BlockRecognizer,
    GridVectorRecognizer,
    HeaderWindow,
    MultiRecordRecognizer,
    RecognizerRegistry,
)

# Block kinds
DISPLACEMENT = "displacement"
SPC_FORCE = "spc_force"
APPLIED_LOAD = "applied_load"
EIGENVECTOR = "eigenvector"
REAL_EIGENVALUE = "real_eigenvalue"
GRID_POINT_FORCE = "grid_point_force"
ELEMENT_FORCE = "element_force"
ELEMENT_STRESS = "element_stress"
ELEMENT_STRAIN = "element_strain"

SIX_DOF = ("t1", "t2", "t3", "r1", "r2", "r3")
SIX_DOF_HEADER = tuple(name.upper() for name in SIX_DOF)

MSC_SOLVERS = (Solver.MSC, Solver.SIMCENTER)
MYSTRAN_SOLVERS = (Solver.MYSTRAN,)


def _int(name: str) -> Column:
    return Column(name=name, ctype=ColumnType.INTEGER)


def _text(name: str) -> Column:
    return Column(name=name, ctype=ColumnType.TEXT)


def _reals(*names: str) -> list[Column]:
    return [Column(name=n, ctype=ColumnType.REAL) for n in names]


# MSC: POINT ID. / TYPE (G, S, ...) / six components
MSC_GRID_COLUMNS = (_int("grid"), _text("point_type"), *_reals(*SIX_DOF))
# MYSTRAN: GRID / COORD SYS / six components
MYSTRAN_GRID_COLUMNS = (_int("grid"), _int("coord_sys"), *_reals(*SIX_DOF))

MSC_GRID_HEADER = ("POINT ID.", "TYPE", "T1", "R3")
MYSTRAN_GRID_HEADER = ("GRID", "COORD", "T1", "R3")

ROD_FORCE_COLUMNS = (_int("element_id"), *_reals("axial_force", "torque"))
# Stresses and strains; the margins are blank without material allowables
ROD_RESULT_COLUMNS = (
    _int("element_id"),
    *_reals("axial", "axial_margin", "torsional", "torsional_margin"),
)
ROD_MARGINS = ("axial_margin", "torsional_margin")
BAR_FORCE_COLUMNS = (
    _int("element_id"),
    *_reals("bm_a1", "bm_a2", "bm_b1", "bm_b2", "shear_1", "shear_2", "axial_force", "torque"),
)
# Membrane forces, bending moments, transverse shears
PLATE_FORCE_COLUMNS = (
    _int("element_id"),
    *_reals("nx", "ny", "nxy", "mx", "my", "mxy", "qx", "qy"),
)

# Result word in MSC/MYSTRAN titles -> (kind, ELAS1 value column)
ELEMENT_RESULTS = {
    "FORCES": (ELEMENT_FORCE, "force"),
    "STRESSES": (ELEMENT_STRESS, "stress"),
    "STRAINS": (ELEMENT_STRAIN, "strain"),
}


def mystran_title(result: str, element_type: str) -> str:
    """Title MYSTRAN prints above an element result table."""
    if result == "FORCES":
        return f"ELEMENT ENGINEERING FORCES FOR ELEMENT TYPE {element_type}"
    return f"ELEMENT {result} IN LOCAL ELEMENT COORDINATE SYSTEM FOR ELEMENT TYPE {element_type}"


class PlateStressRecognizer(BlockRecognizer):
    """QUAD4/TRIA3 stresses or strains, two fiber lines per element.

    The second fiber line omits the element id. The last column is von Mises
    unless the header prints maximum shear instead (STRESS(MAXS) requests),
    so the layout is read off the header.
    """

    LEADING = (_int("element_id"), *_reals("fiber_distance", "normal_x", "normal_y",
                                           "shear_xy", "angle", "major", "minor"))

    def __init__(
        self,
        name: str,
        titles,
        secondary_id: str,
        kind: str = ELEMENT_STRESS,
        header_keywords=("FIBER", "NORMAL-X", "SHEAR-XY"),
        solvers=MSC_SOLVERS,
    ):
        super().__init__(
            name=name,
            kind=kind,
            titles=titles,
            columns=(*self.LEADING, *_reals("von_mises")),
            header_keywords=header_keywords,
            row_key=("element_id", "fiber_distance"),
            secondary_id=secondary_id,
            solvers=solvers,
            inherit=1,
        )

    def layout(self, window: HeaderWindow):
        if "MAX SHEAR" in window.header_text:
            return (*self.LEADING, *_reals("max_shear"))
        return self.columns


class BarStressRecognizer(BlockRecognizer):
    """CBAR stresses or strains, one line per element end.

    The end A line starts with the element id and carries the axial value;
    the end B line below it prints neither. Each line ends with a safety
    margin (tension for A, compression for B) that may be blank.
    """

    COLUMNS = (
        _int("element_id"),
        _text("end"),
        *_reals("s1", "s2", "s3", "s4", "axial", "s_max", "s_min", "margin"),
    )

    def __init__(self, name: str, kind: str, titles, header_keywords=(), solvers=()):
        super().__init__(
            name=name,
            kind=kind,
            titles=titles,
            columns=self.COLUMNS,
            header_keywords=header_keywords,
            row_key=("element_id", "end"),
            secondary_id="BAR",
            solvers=solvers,
            optional=("margin",),
        )

    def extract(self, line, columns, previous):
        if line.kind != LineKind.CONTINUATION:
            printed = tuple(c for c in columns if c.name != "end")
            row = self.decode_fields(line.tokens, printed)
            row["end"] = "A"
        else:
            if previous is None or previous["end"] != "A":
                raise RowShapeError("End B line with no end A line above it")
            printed = tuple(c for c in columns if c.name not in ("element_id", "end", "axial"))
            row = self.decode_fields(line.tokens, printed)
            row.update(element_id=previous["element_id"], end="B", axial=None)
        return [{c.name: row[c.name] for c in columns}]


PLATE_SHAPES = (("QUAD4", "QUADRILATERAL"), ("TRIA3", "TRIANGULAR"))


def _msc_element_recognizers() -> list[BlockRecognizer]:
    """CELAS1, CROD, CBAR and plate result tables as MSC/Simcenter print them."""
    recognizers: list[BlockRecognizer] = [
        MultiRecordRecognizer(
            name="msc-rod-force",
            kind=ELEMENT_FORCE,
            titles=("FORCES IN ROD ELEMENTS",),
            columns=ROD_FORCE_COLUMNS,
            header_keywords=("ELEMENT", "AXIAL", "TORQUE"),
            row_key=("element_id",),
            secondary_id="ROD",
            records_per_line=2,
        ),
        BlockRecognizer(
            name="bar-force",
            kind=ELEMENT_FORCE,
            titles=("FORCES IN BAR ELEMENTS",),
            columns=BAR_FORCE_COLUMNS,
            header_keywords=("BEND-MOMENT", "SHEAR", "AXIAL"),
            row_key=("element_id",),
            secondary_id="BAR",
        ),
        PlateStressRecognizer(
            name="quad4-stress",
            titles=("STRESSES IN QUADRILATERAL ELEMENTS",),
            secondary_id="QUAD4",
        ),
        PlateStressRecognizer(
            name="tria3-stress",
            titles=("STRESSES IN TRIANGULAR ELEMENTS",),
            secondary_id="TRIA3",
        ),
    ]
    for element_type, shape in PLATE_SHAPES:
        recognizers.append(
            BlockRecognizer(
                name=f"msc-{element_type.lower()}-force",
                kind=ELEMENT_FORCE,
                titles=(f"FORCES IN {shape} ELEMENTS",),
                columns=PLATE_FORCE_COLUMNS,
                header_keywords=("MEMBRANE", "BENDING"),
                row_key=("element_id",),
                secondary_id=element_type,
                solvers=MSC_SOLVERS,
            )
        )
        # STRAIN(FIBER) prints FIBER DISTANCE, STRAIN(STRCUR) prints CURVATURE
        recognizers.append(
            PlateStressRecognizer(
                name=f"{element_type.lower()}-strain",
                titles=(f"STRAINS IN {shape} ELEMENTS",),
                secondary_id=element_type,
                kind=ELEMENT_STRAIN,
                header_keywords=("NORMAL-X", "SHEAR-XY"),
            )
        )
    for result, (kind, value) in ELEMENT_RESULTS.items():
        recognizers.append(
            MultiRecordRecognizer(
                name=f"msc-elas1-{value}",
                kind=kind,
                titles=(f"{result} IN SCALAR SPRINGS",),
                columns=(_int("element_id"), *_reals(value)),
                header_keywords=("ELEMENT", value.upper()),
                row_key=("element_id",),
                secondary_id="ELAS1",
                solvers=MSC_SOLVERS,
                records_per_line=4,
            )
        )
        if result == "FORCES":
            continue
        recognizers.append(
            MultiRecordRecognizer(
                name=f"msc-rod-{value}",
                kind=kind,
                titles=(f"{result} IN ROD ELEMENTS",),
                columns=ROD_RESULT_COLUMNS,
                header_keywords=("AXIAL", "TORSIONAL", "SAFETY"),
                row_key=("element_id",),
                secondary_id="ROD",
                solvers=MSC_SOLVERS,
                optional=ROD_MARGINS,
                records_per_line=2,
            )
        )
        recognizers.append(
            BarStressRecognizer(
                name=f"msc-bar-{value}",
                kind=kind,
                titles=(f"{result} IN BAR ELEMENTS",),
                header_keywords=("SA1", "SA-MAX", "SB-MIN"),
                solvers=MSC_SOLVERS,
            )
        )
    return recognizers


def _mystran_element_recognizers() -> list[BlockRecognizer]:
    """MYSTRAN element result tables, one record per line.

    MYSTRAN headers are printed in mixed case, so these match on the title
    alone.
    """
    recognizers: list[BlockRecognizer] = []
    for result, (kind, value) in ELEMENT_RESULTS.items():
        common = dict(kind=kind, row_key=("element_id",), solvers=MYSTRAN_SOLVERS)
        recognizers.append(
            BlockRecognizer(
                name=f"mystran-elas1-{value}",
                titles=(mystran_title(result, "ELAS1"),),
                columns=(_int("element_id"), *_reals(value)),
                secondary_id="ELAS1",
                **common,
            )
        )
        if result == "FORCES":
            recognizers.append(
                BlockRecognizer(
                    name="mystran-rod-force",
                    titles=(mystran_title(result, "ROD"),),
                    columns=ROD_FORCE_COLUMNS,
                    secondary_id="ROD",
                    **common,
                )
            )
            recognizers.append(
                BlockRecognizer(
                    name="mystran-bar-force",
                    titles=(mystran_title(result, "BAR"),),
                    columns=BAR_FORCE_COLUMNS,
                    secondary_id="BAR",
                    **common,
                )
            )
        else:
            recognizers.append(
                BlockRecognizer(
                    name=f"mystran-rod-{value}",
                    titles=(mystran_title(result, "ROD"),),
                    columns=ROD_RESULT_COLUMNS,
                    secondary_id="ROD",
                    optional=ROD_MARGINS,
                    **common,
                )
            )
            recognizers.append(
                BarStressRecognizer(
                    name=f"mystran-bar-{value}",
                    kind=kind,
                    titles=(mystran_title(result, "BAR"),),
                    solvers=MYSTRAN_SOLVERS,
                )
            )
        for element_type in ("QUAD4", "TRIA3"):
            name = f"mystran-{element_type.lower()}-{value}"
            titles = (mystran_title(result, element_type),)
            if result == "FORCES":
                recognizers.append(
                    BlockRecognizer(
                        name=name,
                        titles=titles,
                        columns=PLATE_FORCE_COLUMNS,
                        secondary_id=element_type,
                        **common,
                    )
                )
            else:
                recognizers.append(
                    PlateStressRecognizer(
                        name=name,
                        titles=titles,
                        secondary_id=element_type,
                        kind=kind,
                        header_keywords=(),
                        solvers=MYSTRAN_SOLVERS,
                    )
                )
    return recognizers


def build_default_recognizers() -> list[BlockRecognizer]:
    """Fresh list of the built-in recognizers, in lookup order."""
    return [
        BlockRecognizer(
            name="msc-displacement",
            kind=DISPLACEMENT,
            titles=("DISPLACEMENT VECTOR",),
            columns=MSC_GRID_COLUMNS,
            header_keywords=MSC_GRID_HEADER,
            row_key=("grid",),
        ),
        BlockRecognizer(
            name="mystran-displacement",
            kind=DISPLACEMENT,
            titles=("DISPLACEMENTS",),
            columns=MYSTRAN_GRID_COLUMNS,
            header_keywords=MYSTRAN_GRID_HEADER,
            row_key=("grid",),
        ),
        BlockRecognizer(
            name="msc-spc-force",
            kind=SPC_FORCE,
            titles=("FORCES OF SINGLE-POINT CONSTRAINT",),
            columns=MSC_GRID_COLUMNS,
            header_keywords=MSC_GRID_HEADER,
            row_key=("grid",),
        ),
        BlockRecognizer(
            name="mystran-spc-force",
            kind=SPC_FORCE,
            titles=("SPC FORCES",),
            columns=MYSTRAN_GRID_COLUMNS,
            header_keywords=MYSTRAN_GRID_HEADER,
            row_key=("grid",),
        ),
        BlockRecognizer(
            name="msc-applied-load",
            kind=APPLIED_LOAD,
            titles=("LOAD VECTOR",),
            columns=MSC_GRID_COLUMNS,
            header_keywords=MSC_GRID_HEADER,
            row_key=("grid",),
        ),
        BlockRecognizer(
            name="mystran-applied-load",
            kind=APPLIED_LOAD,
            titles=("APPLIED FORCES",),
            columns=MYSTRAN_GRID_COLUMNS,
            header_keywords=MYSTRAN_GRID_HEADER,
            row_key=("grid",),
        ),
        BlockRecognizer(
            name="msc-eigenvector",
            kind=EIGENVECTOR,
            titles=("REAL EIGENVECTOR NO.",),
            columns=MSC_GRID_COLUMNS,
            header_keywords=MSC_GRID_HEADER,
            row_key=("grid",),
            secondary_pattern=r"NO\.\s*(\d+)",
        ),
        BlockRecognizer(
            name="real-eigenvalue",
            kind=REAL_EIGENVALUE,
            titles=("REAL EIGENVALUES",),
            columns=(
                _int("mode"),
                _int("extraction_order"),
                *_reals("eigenvalue", "radians", "cycles",
                        "generalized_mass", "generalized_stiffness"),
            ),
            header_keywords=("MODE", "EIGENVALUE", "CYCLES"),
            row_key=("mode",),
        ),
        BlockRecognizer(
            name="msc-grid-point-force-balance",
            kind=GRID_POINT_FORCE,
            titles=("GRID POINT FORCE BALANCE",),
            columns=(_int("point_id"), _int("element_id"), _text("source"), *_reals(*SIX_DOF)),
            header_keywords=("POINT-ID", "ELEMENT-ID", "SOURCE"),
            row_key=("point_id", "element_id", "source"),
            solvers=MSC_SOLVERS,
            # APP-LOAD, F-OF-SPC and *TOTALS* lines print no element id
            optional=("element_id",),
        ),
        *_msc_element_recognizers(),
        *_mystran_element_recognizers(),
        # Fallbacks: any six-DOF grid table under a known title
        GridVectorRecognizer(
            name="generic-displacement",
            kind=DISPLACEMENT,
            titles=("DISPLACEMENT",),
            columns=MSC_GRID_COLUMNS,
            header_keywords=SIX_DOF_HEADER,
            row_key=("grid",),
        ),
        GridVectorRecognizer(
            name="generic-spc-force",
            kind=SPC_FORCE,
            titles=("SPC FORCE", "SINGLE-POINT CONSTRAINT"),
            columns=MSC_GRID_COLUMNS,
            header_keywords=SIX_DOF_HEADER,
            row_key=("grid",),
        ),
        GridVectorRecognizer(
            name="generic-applied-load",
            kind=APPLIED_LOAD,
            titles=("LOAD VECTOR", "APPLIED FORCE", "APPLIED LOAD"),
            columns=MSC_GRID_COLUMNS,
            header_keywords=SIX_DOF_HEADER,
            row_key=("grid",),
        ),
    ]


@lru_cache()
def default_registry() -> RecognizerRegistry:
    """Frozen registry of the built-in recognizers, shared process-wide."""
    return RecognizerRegistry(build_default_recognizers()).freeze()
