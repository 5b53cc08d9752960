"""Pytest configuration and fixtures."""

import pytest

from f06kit.pipeline import parse

MSC_BANNER = (
    "1    MSC NASTRAN TEST PROBLEM                                    "
    "JANUARY   1, 2024  MSC Nastran  1/ 1/24   PAGE     {page}"
)
DISP_TITLE = "                                             D I S P L A C E M E N T   V E C T O R"
MSC_GRID_HEADER = (
    "      POINT ID.   TYPE          T1             T2             T3"
    "             R1             R2             R3"
)


def msc_banner(page: int) -> str:
    return MSC_BANNER.format(page=page)


def grid_row(grid: int, *values: str, point_type: str = "G") -> str:
    """MSC-style six-component grid line."""
    return f"{grid:>14d}      {point_type}     " + "  ".join(f"{v:>13s}" for v in values)


ZEROS = ("0.0",) * 6

MSC_STATIC = "\n".join(
    [
        msc_banner(5),
        " ",
        "0                                                                              SUBCASE 1",
        " ",
        DISP_TITLE,
        " ",
        MSC_GRID_HEADER,
        grid_row(1, *ZEROS),
        grid_row(2, "1.234500E-03", "-2.500000E-04", "0.0", "0.0", "0.0", "1.000000E-05"),
        grid_row(3, "-1.23450+05", "3.000000E-03", "0.0", "0.0", "0.0", "0.0"),
        msc_banner(6),
        " ",
        "0                                                                              SUBCASE 1",
        " ",
        DISP_TITLE,
        " ",
        MSC_GRID_HEADER,
        grid_row(4, "4.000000E-03", "0.0", "0.0", "0.0", "0.0", "0.0"),
        grid_row(5, "5.000000E-03", "0.0", "0.0", "0.0", "0.0", "0.0"),
        " ",
        "                               F O R C E S   O F   S I N G L E - P O I N T   "
        "C O N S T R A I N T",
        " ",
        MSC_GRID_HEADER,
        grid_row(1, "-1.000000E+02", "0.0", "5.000000E+01", "0.0", "0.0", "0.0"),
        grid_row(6, "1.000000E+02", "0.0", "-5.000000E+01", "0.0", "0.0", "0.0"),
        " ",
        "                                                  O L O A D    R E S U L T A N T",
        " ",
        "              TYPE       T1            T2            T3            R1            R2            R3",
        "0        1     FX    1.000000E+02     ----          ----          ----       "
        "0.000000E+00  0.000000E+00",
        msc_banner(7),
        " ",
        "0                                                                              SUBCASE 2",
        " ",
        DISP_TITLE,
        " ",
        MSC_GRID_HEADER,
        grid_row(1, *ZEROS),
        grid_row(2, "2.000000E-03", "0.0", "0.0", "0.0", "0.0", "0.0"),
        "",
    ]
)

MSC_ELEMENTS = "\n".join(
    [
        msc_banner(1),
        " ",
        "0                                                                              SUBCASE 1",
        " ",
        "                                          R E A L   E I G E N V A L U E S",
        "   MODE    EXTRACTION      EIGENVALUE            RADIANS             CYCLES"
        "            GENERALIZED         GENERALIZED",
        "    NO.       ORDER                                                       "
        "                MASS              STIFFNESS",
        "        1         1        3.947842E+03        6.283185E+01        1.000000E+01"
        "        1.000000E+00        3.947842E+03",
        "        2         2        1.579137E+04        1.256637E+02        2.000000E+01"
        "        1.000000E+00        1.579137E+04",
        msc_banner(2),
        " ",
        "      EIGENVALUE =  3.947842E+03",
        "          CYCLES =  1.000000E+01         R E A L   E I G E N V E C T O R   N O .          1",
        " ",
        MSC_GRID_HEADER,
        grid_row(1, "1.000000E+00", "0.0", "0.0", "0.0", "0.0", "0.0"),
        grid_row(2, "5.000000E-01", "0.0", "0.0", "0.0", "0.0", "0.0"),
        msc_banner(3),
        " ",
        "      EIGENVALUE =  1.579137E+04",
        "          CYCLES =  2.000000E+01         R E A L   E I G E N V E C T O R   N O .          2",
        " ",
        MSC_GRID_HEADER,
        grid_row(1, "-1.000000E+00", "0.0", "0.0", "0.0", "0.0", "0.0"),
        grid_row(2, "1.000000E+00", "0.0", "0.0", "0.0", "0.0", "0.0"),
        msc_banner(4),
        " ",
        "0                                                                              SUBCASE 2",
        " ",
        "                                 F O R C E S   I N   R O D   E L E M E N T S"
        "     ( C R O D )",
        "       ELEMENT           AXIAL                                       ELEMENT           AXIAL",
        "         ID.             FORCE          TORQUE                         ID."
        "             FORCE          TORQUE",
        "            11        1.000000E+03   0.0                                 12"
        "        2.000000E+03   0.0",
        "            13       -5.000000E+02   1.000000E+01",
        " ",
        "                                 F O R C E S   I N   B A R   E L E M E N T S"
        "         ( C B A R )",
        "0    ELEMENT         BEND-MOMENT END-A            BEND-MOMENT END-B"
        "                - SHEAR -               AXIAL",
        "       ID.         PLANE 1       PLANE 2        PLANE 1       PLANE 2"
        "        PLANE 1       PLANE 2         FORCE          TORQUE",
        "0        21    1.000000E+02  2.000000E+02   3.000000E+02  4.000000E+02"
        "   5.000000E+00  6.000000E+00   7.000000E+03   0.0",
        " ",
        "                         S T R E S S E S   I N   Q U A D R I L A T E R A L"
        "   E L E M E N T S   ( Q U A D 4 )",
        "  ELEMENT      FIBER               STRESSES IN ELEMENT COORD SYSTEM"
        "             PRINCIPAL STRESSES (ZERO SHEAR)",
        "    ID.       DISTANCE           NORMAL-X       NORMAL-Y      SHEAR-XY"
        "       ANGLE         MAJOR           MINOR        VON MISES",
        "0       101  -5.000000E-01    1.000000E+03   2.000000E+02   5.000000E+01"
        "    3.5000    1.003000E+03   1.970000E+02   9.200000E+02",
        "              5.000000E-01   -1.000000E+03  -2.000000E+02  -5.000000E+01"
        "  -86.5000   -1.970000E+02  -1.003000E+03   9.200000E+02",
        "0       102  -5.000000E-01    8.000000E+02   1.000000E+02   0.0"
        "            0.0       8.000000E+02   1.000000E+02   7.549834E+02",
        "              5.000000E-01   -8.000000E+02  -1.000000E+02   0.0"
        "            0.0      -1.000000E+02  -8.000000E+02   7.549834E+02",
        " ",
        "                                          G R I D   P O I N T   F O R C E"
        "   B A L A N C E",
        "   POINT-ID    ELEMENT-ID     SOURCE             T1             T2             T3"
        "             R1             R2             R3",
        "0        1                 APP-LOAD       1.000000E+02   0.0            0.0"
        "            0.0            0.0            0.0",
        "         1            21   BAR           -1.000000E+02   0.0            0.0"
        "            0.0            0.0            0.0",
        "         1                 *TOTALS*       0.0            0.0            0.0"
        "            0.0            0.0            0.0",
        "",
    ]
)

MYSTRAN_STATIC = "\n".join(
    [
        " MYSTRAN Version 15.2.1   Jan  1 2024",
        " ",
        " OUTPUT FOR SUBCASE          1",
        " ",
        "                                             D I S P L A C E M E N T S",
        "                                    (in global coordinate system at each grid)",
        "           GRID     COORD      T1            T2            T3            R1"
        "            R2            R3",
        "                     SYS",
        "             1        0   0.000000E+00  0.000000E+00  0.000000E+00  0.000000E+00"
        "  0.000000E+00  0.000000E+00",
        "             2        0   1.000000E-03  0.000000E+00 -2.000000E-04  0.000000E+00"
        "  3.000000E-05  0.000000E+00",
        "                          ------------- ------------- ------------- -------------"
        " ------------- -------------",
        "                   MAX* :  1.000000E-03  0.000000E+00  0.000000E+00  0.000000E+00"
        "  3.000000E-05  0.000000E+00",
        " ",
        "                                                 S P C   F O R C E S",
        "                                    (in global coordinate system at each grid)",
        "           GRID     COORD      T1            T2            T3            R1"
        "            R2            R3",
        "                     SYS",
        "             1        0  -1.000000E+02  0.000000E+00  2.000000E+01  0.000000E+00"
        "  0.000000E+00  0.000000E+00",
        "                          ------------- ------------- ------------- -------------"
        " ------------- -------------",
        " ",
        " OUTPUT FOR SUBCASE          2",
        " ",
        "                                             D I S P L A C E M E N T S",
        "           GRID     COORD      T1            T2            T3            R1"
        "            R2            R3",
        "                     SYS",
        "             1        0   0.000000E+00  0.000000E+00  0.000000E+00  0.000000E+00"
        "  0.000000E+00  0.000000E+00",
        "             2        0   2.000000E-03  0.000000E+00 -4.000000E-04  0.000000E+00"
        "  6.000000E-05  0.000000E+00",
        "                          ------------- ------------- ------------- -------------"
        " ------------- -------------",
        "",
    ]
)


def spaced(title: str) -> str:
    """Letter-space a title the way solvers print it."""
    return "                    " + "   ".join(" ".join(word) for word in title.split())


MSC_ELEMENT_RESULTS = "\n".join(
    [
        msc_banner(1),
        " ",
        "0                                                                              SUBCASE 1",
        " ",
        spaced("FORCES IN SCALAR SPRINGS (CELAS1)"),
        "        ELEMENT         FORCE            ELEMENT         FORCE            ELEMENT"
        "         FORCE            ELEMENT         FORCE",
        "          ID.                              ID.                              ID."
        "                              ID.",
        "0           1      1.000000E+01            2     -2.000000E+01            3"
        "      3.000000E+01            4      4.000000E+01",
        "            5      5.000000E+01",
        " ",
        spaced("STRESSES IN ROD ELEMENTS (CROD)"),
        "      ELEMENT       AXIAL       SAFETY      TORSIONAL     SAFETY       ELEMENT"
        "       AXIAL       SAFETY      TORSIONAL     SAFETY",
        "        ID.        STRESS       MARGIN        STRESS      MARGIN         ID."
        "        STRESS       MARGIN        STRESS      MARGIN",
        "0         11    1.000000E+02   5.0E-01    2.000000E+01   9.0E-01           12"
        "    2.000000E+02                 4.000000E+01",
        " ",
        spaced("STRESSES IN BAR ELEMENTS (CBAR)"),
        "  ELEMENT        SA1            SA2            SA3            SA4           AXIAL"
        "          SA-MAX         SA-MIN     M.S.-T",
        "    ID.          SB1            SB2            SB3            SB4           STRESS"
        "         SB-MAX         SB-MIN     M.S.-C",
        "0        21   1.000000E+02   2.000000E+02   3.000000E+02   4.000000E+02"
        "   5.000000E+02   6.000000E+02   1.000000E+02",
        "             -1.000000E+02  -2.000000E+02  -3.000000E+02  -4.000000E+02"
        "                  -1.000000E+02  -6.000000E+02",
        "0        22   1.000000E+01   1.000000E+01   1.000000E+01   1.000000E+01"
        "   2.000000E+01   3.000000E+01   1.000000E+01   1.5E+00",
        "              1.000000E+01   1.000000E+01   1.000000E+01   1.000000E+01"
        "                   1.000000E+01   1.000000E+01   2.5E+00",
        " ",
        spaced("FORCES IN QUADRILATERAL ELEMENTS (QUAD4)"),
        "    ELEMENT                    - MEMBRANE  FORCES -                      - BENDING"
        "   MOMENTS -            - TRANSVERSE SHEAR FORCES -",
        "      ID       FX            FY            FXY           MX            MY"
        "            MXY           QX            QY",
        "0       101  1.000000E+02  2.000000E+01  5.000000E+00  1.000000E+00  2.000000E+00"
        "  3.000000E-01  4.000000E+00  5.000000E+00",
        " ",
        spaced("STRAINS IN QUADRILATERAL ELEMENTS (QUAD4)"),
        "  ELEMENT      STRAIN               STRAINS IN ELEMENT COORD SYSTEM"
        "             PRINCIPAL  STRAINS (ZERO SHEAR)",
        "    ID.       CURVATURE          NORMAL-X       NORMAL-Y      SHEAR-XY"
        "       ANGLE         MAJOR           MINOR        VON MISES",
        "0       101   0.0             1.000000E-04   2.000000E-05   5.000000E-06"
        "    3.5000    1.003000E-04   1.970000E-05   9.200000E-05",
        "              1.000000E+00   -1.000000E-04  -2.000000E-05  -5.000000E-06"
        "  -86.5000   -1.970000E-05  -1.003000E-04   9.200000E-05",
        "",
    ]
)

MYSTRAN_RULE = "                   ------------- ------------- -------------"

MYSTRAN_ELEMENTS = "\n".join(
    [
        " MYSTRAN Version 15.2.1   Jan  1 2024",
        " ",
        " OUTPUT FOR SUBCASE          1     (PRESSURE LOAD)",
        " ",
        spaced("ELEMENT ENGINEERING FORCES FOR ELEMENT TYPE ELAS1"),
        "                  Element      Force",
        "                    ID",
        "                       11   1.000000E+02",
        "                       12  -5.000000E+01",
        MYSTRAN_RULE,
        " ",
        spaced("ELEMENT STRESSES IN LOCAL ELEMENT COORDINATE SYSTEM FOR ELEMENT TYPE QUAD4"),
        "      Element  Location     Sigma-xx      Sigma-yy      Tau-xy        Angle"
        "         Major         Minor       von Mises",
        "     101  -5.000000E-01  1.000000E+03  2.000000E+02  5.000000E+01  3.500000E+00"
        "  1.003000E+03  1.970000E+02  9.200000E+02",
        "           5.000000E-01 -1.000000E+03 -2.000000E+02 -5.000000E+01 -8.650000E+01"
        " -1.970000E+02 -1.003000E+03  9.200000E+02",
        MYSTRAN_RULE,
        " ",
        spaced("ELEMENT STRAINS IN LOCAL ELEMENT COORDINATE SYSTEM FOR ELEMENT TYPE ROD"),
        "           Element      Axial      Axial M.S.    Torsional   Torsional M.S.",
        "                31   1.000000E-04                2.000000E-05",
        "                32   3.000000E-04   2.0E+00      4.000000E-05   3.0E+00",
        MYSTRAN_RULE,
        " ",
        spaced("ELEMENT ENGINEERING FORCES FOR ELEMENT TYPE QUAD4"),
        "      Element       Nxx           Nyy           Nxy           Mxx           Myy"
        "           Mxy           Qx            Qy",
        "     101   1.000000E+02  2.000000E+01  5.000000E+00  1.000000E+00  2.000000E+00"
        "  3.000000E-01  4.000000E+00  5.000000E+00",
        MYSTRAN_RULE,
        "",
    ]
)


@pytest.fixture
def msc_static_text():
    """MSC static run: two subcases, a displacement table split over two pages."""
    return MSC_STATIC


@pytest.fixture
def msc_elements_text():
    """MSC run with modal, element force, stress and grid point force tables."""
    return MSC_ELEMENTS


@pytest.fixture
def mystran_text():
    """MYSTRAN static run with dash-ruled tables."""
    return MYSTRAN_STATIC


@pytest.fixture
def msc_static(msc_static_text):
    return parse(msc_static_text)


@pytest.fixture
def msc_elements(msc_elements_text):
    return parse(msc_elements_text)


@pytest.fixture
def mystran(mystran_text):
    return parse(mystran_text)


@pytest.fixture
def f06_file(tmp_path, msc_static_text):
    """MSC static text written to disk."""
    path = tmp_path / "static.f06"
    path.write_text(msc_static_text)
    return path


@pytest.fixture
def output_dir(tmp_path):
    """Create a temporary output directory."""
    out_dir = tmp_path / "output"
    out_dir.mkdir()
    return out_dir


@pytest.fixture
def msc_element_results():
    """MSC CELAS1, CROD, CBAR and CQUAD4 force, stress and strain tables."""
    return parse(MSC_ELEMENT_RESULTS)


@pytest.fixture
def mystran_elements():
    """MYSTRAN element result tables with mixed-case headers."""
    return parse(MYSTRAN_ELEMENTS)
